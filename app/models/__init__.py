"""Beanie document models and Pydantic schemas."""
from app.models.user import User, UserCreate, UserAccessUpdate, UserOut
from app.models.student import Student, StudentCreate, StudentUpdate, Category, Branch
from app.models.parade import Parade, ParadeCreate, ParadeUpdate, ParadeStatusUpdate, ParadeStatus, ParadeType
from app.models.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    AttendanceMark,
    AttendanceBatchEntry,
    AttendanceBatchMark,
    AttendanceUpdate,
    BatchMarkResult,
    NOT_MARKED,
)

DOCUMENT_MODELS = [User, Student, Parade, AttendanceRecord]

__all__ = [
    "User",
    "UserCreate",
    "UserAccessUpdate",
    "UserOut",
    "Student",
    "StudentCreate",
    "StudentUpdate",
    "Category",
    "Branch",
    "Parade",
    "ParadeCreate",
    "ParadeUpdate",
    "ParadeStatusUpdate",
    "ParadeStatus",
    "ParadeType",
    "AttendanceRecord",
    "AttendanceStatus",
    "AttendanceMark",
    "AttendanceBatchEntry",
    "AttendanceBatchMark",
    "AttendanceUpdate",
    "BatchMarkResult",
    "NOT_MARKED",
    "DOCUMENT_MODELS",
]
