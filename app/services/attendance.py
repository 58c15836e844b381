"""Attendance write path and the attendance-rate recomputation.

Rates count ``Present`` and ``Late`` as attended. The same rule is used by the
reports in :mod:`app.services.reports`.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from pymongo.errors import DuplicateKeyError

from app.errors import DomainError, NotFound, ValidationFailure
from app.models.attendance import (
    AttendanceBatchEntry,
    AttendanceRecord,
    AttendanceStatus,
    BatchMarkResult,
)
from app.models.parade import Parade
from app.models.student import Student
from app.services.documents import get_attendance_record, get_parade, get_student, object_ids

logger = logging.getLogger(__name__)

ATTENDED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


def attendance_rate(attended: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(attended / total * 100, 1)


def rate_from_statuses(statuses: Iterable[AttendanceStatus | str]) -> float:
    total = 0
    attended = 0
    for status in statuses:
        total += 1
        if AttendanceStatus(status) in ATTENDED_STATUSES:
            attended += 1
    return attendance_rate(attended, total)


def parse_status(value: AttendanceStatus | str) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationFailure(f"Invalid status '{value}'. Expected one of: {allowed}")


async def recompute_attendance_rate(student_id: str) -> float:
    """Overwrite the student's stored rate from their attendance records."""
    student = await get_student(student_id)
    sid = str(student.id)
    total = await AttendanceRecord.find({"student_id": sid}).count()
    attended = await AttendanceRecord.find(
        {"student_id": sid, "status": {"$in": [s.value for s in ATTENDED_STATUSES]}}
    ).count()
    rate = attendance_rate(attended, total)
    await student.set({Student.attendance_rate: rate})
    return rate


async def _upsert_record(
    parade_id: str,
    student_id: str,
    status: AttendanceStatus,
    remarks: Optional[str],
    marked_by: str,
) -> tuple[AttendanceRecord, bool]:
    existing = await AttendanceRecord.find_one({"parade_id": parade_id, "student_id": student_id})
    if existing:
        await _overwrite(existing, status, remarks, marked_by)
        return existing, False

    record = AttendanceRecord(
        parade_id=parade_id,
        student_id=student_id,
        status=status,
        remarks=remarks,
        marked_by=marked_by,
    )
    try:
        await record.insert()
    except DuplicateKeyError:
        # Another writer created the pair first; mark over it
        existing = await AttendanceRecord.find_one({"parade_id": parade_id, "student_id": student_id})
        if not existing:
            raise
        await _overwrite(existing, status, remarks, marked_by)
        return existing, False
    return record, True


async def _overwrite(
    record: AttendanceRecord,
    status: AttendanceStatus,
    remarks: Optional[str],
    marked_by: str,
) -> None:
    now = datetime.utcnow()
    record.status = status
    record.remarks = remarks
    record.marked_by = marked_by
    record.marked_at = now
    record.updated_at = now
    await record.save()


async def mark_attendance(
    parade_id: str,
    student_id: str,
    status: AttendanceStatus | str,
    remarks: Optional[str],
    marked_by: str,
) -> tuple[AttendanceRecord, bool]:
    """Record a status for a (parade, student) pair; returns (record, created)."""
    status = parse_status(status)
    parade = await get_parade(parade_id)
    student = await get_student(student_id)
    record, created = await _upsert_record(str(parade.id), str(student.id), status, remarks, marked_by)
    await recompute_attendance_rate(str(student.id))
    return record, created


async def mark_batch(
    parade_id: str,
    entries: list[AttendanceBatchEntry],
    marked_by: str,
) -> BatchMarkResult:
    """Mark many students for one parade; a failing entry does not stop the others."""
    parade = await get_parade(parade_id)
    pid = str(parade.id)
    result = BatchMarkResult()
    touched: list[str] = []

    for entry in entries:
        try:
            status = parse_status(entry.status)
            student = await get_student(entry.student_id)
            _, created = await _upsert_record(pid, str(student.id), status, entry.remarks, marked_by)
        except DomainError as exc:
            result.errors.append(f"Error marking attendance for student {entry.student_id}: {exc.message}")
            continue
        if created:
            result.created += 1
        else:
            result.updated += 1
        if str(student.id) not in touched:
            touched.append(str(student.id))

    for sid in touched:
        try:
            await recompute_attendance_rate(sid)
        except NotFound as exc:
            logger.warning(f"Attendance rate not updated for {sid}: {exc.message}")
            result.errors.append(f"Error updating attendance rate for student {sid}: {exc.message}")

    logger.info(
        f"Parade {pid}: {result.created} created, {result.updated} updated, {len(result.errors)} errors"
    )
    return result


async def update_attendance(
    record_id: str,
    status: AttendanceStatus | str,
    remarks: Optional[str],
    marked_by: str,
) -> AttendanceRecord:
    status = parse_status(status)
    record = await get_attendance_record(record_id)
    await _overwrite(record, status, remarks, marked_by)
    try:
        await recompute_attendance_rate(record.student_id)
    except NotFound:
        logger.warning(f"Updated attendance {record_id} for missing student {record.student_id}")
    return record


async def unmark(record_id: str) -> AttendanceRecord:
    """Hard-delete a record and refresh the student's rate."""
    record = await get_attendance_record(record_id)
    await record.delete()
    try:
        await recompute_attendance_rate(record.student_id)
    except NotFound:
        logger.warning(f"Deleted attendance {record_id} for missing student {record.student_id}")
    return record


async def records_for_parade(parade_id: str) -> list[dict]:
    parade = await get_parade(parade_id)
    records = await AttendanceRecord.find({"parade_id": str(parade.id)}).to_list()
    students = await Student.find({"_id": {"$in": object_ids(r.student_id for r in records)}}).to_list()
    student_map = {str(s.id): s for s in students}
    out = []
    for r in records:
        s = student_map.get(r.student_id)
        out.append(
            {
                **record_out(r),
                "student": {
                    "id": r.student_id,
                    "name": s.name if s else "Unknown",
                    "regimental_number": s.regimental_number if s else None,
                    "roll_number": s.roll_number if s else None,
                    "branch": s.branch if s else None,
                },
            }
        )
    out.sort(key=lambda item: item["student"]["name"])
    return out


async def records_for_student(student_id: str) -> list[dict]:
    student = await get_student(student_id)
    records = await AttendanceRecord.find({"student_id": str(student.id)}).to_list()
    parades = await Parade.find({"_id": {"$in": object_ids(r.parade_id for r in records)}}).to_list()
    parade_map = {str(p.id): p for p in parades}
    out = []
    for r in records:
        p = parade_map.get(r.parade_id)
        out.append(
            {
                **record_out(r),
                "parade": {
                    "id": r.parade_id,
                    "name": p.name if p else "Unknown",
                    "type": p.type if p else None,
                    "date": p.date if p else None,
                    "time": p.time if p else None,
                },
            }
        )
    out.sort(key=lambda item: item["parade"]["date"] or datetime.min, reverse=True)
    return out


def record_out(record: AttendanceRecord) -> dict:
    return {
        "id": str(record.id),
        "parade_id": record.parade_id,
        "student_id": record.student_id,
        "status": record.status,
        "remarks": record.remarks,
        "marked_by": record.marked_by,
        "marked_at": record.marked_at,
    }
