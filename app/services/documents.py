"""Id parsing and lookups shared by the services."""
from __future__ import annotations

from typing import Iterable

from beanie import PydanticObjectId

from app.errors import NotFound
from app.models.attendance import AttendanceRecord
from app.models.parade import Parade
from app.models.student import Student


def safe_object_id(value: str | None) -> PydanticObjectId | None:
    if not value:
        return None
    try:
        return PydanticObjectId(value)
    except Exception:
        return None


def object_ids(values: Iterable[str]) -> list[PydanticObjectId]:
    result = []
    for value in values:
        oid = safe_object_id(value)
        if oid is not None:
            result.append(oid)
    return result


async def get_student(student_id: str) -> Student:
    oid = safe_object_id(student_id)
    student = await Student.get(oid) if oid else None
    if not student:
        raise NotFound(f"Student not found: {student_id}")
    return student


async def get_parade(parade_id: str) -> Parade:
    oid = safe_object_id(parade_id)
    parade = await Parade.get(oid) if oid else None
    if not parade:
        raise NotFound(f"Parade not found: {parade_id}")
    return parade


async def get_attendance_record(record_id: str) -> AttendanceRecord:
    oid = safe_object_id(record_id)
    record = await AttendanceRecord.get(oid) if oid else None
    if not record:
        raise NotFound("Attendance record not found")
    return record
