from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    EXCUSED = "Excused"


NOT_MARKED = "Not Marked"


class AttendanceRecord(Document):
    """One status for one (parade, student) pair."""
    parade_id: Indexed(str)
    student_id: Indexed(str)
    status: AttendanceStatus
    marked_by: str  # user_id
    marked_at: datetime = Field(default_factory=datetime.utcnow)
    remarks: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "attendance_records"
        use_state_management = True
        indexes = [
            IndexModel(
                [("parade_id", ASCENDING), ("student_id", ASCENDING)],
                unique=True,
                name="parade_student_unique",
            ),
            IndexModel([("parade_id", ASCENDING), ("status", ASCENDING)]),
        ]


class AttendanceMark(BaseModel):
    parade_id: str
    student_id: str
    status: AttendanceStatus
    remarks: Optional[str] = None


class AttendanceBatchEntry(BaseModel):
    # status is checked per entry so one bad entry does not reject the batch
    student_id: str
    status: str
    remarks: Optional[str] = None


class AttendanceBatchMark(BaseModel):
    parade_id: str
    attendance: list[AttendanceBatchEntry]


class AttendanceUpdate(BaseModel):
    status: AttendanceStatus
    remarks: Optional[str] = None


class BatchMarkResult(BaseModel):
    created: int = 0
    updated: int = 0
    errors: list[str] = Field(default_factory=list)
