"""Marking attendance for parades."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from app.api.deps import Modifier, Reader, SuperAdmin
from app.models.attendance import (
    AttendanceBatchMark,
    AttendanceMark,
    AttendanceUpdate,
    BatchMarkResult,
)
from app.services import attendance as attendance_service
from app.services.attendance import record_out

router = APIRouter()


@router.get("/parade/{parade_id}")
async def attendance_for_parade(parade_id: str, user: Reader):
    return await attendance_service.records_for_parade(parade_id)


@router.get("/student/{student_id}")
async def attendance_for_student(student_id: str, user: Reader):
    return await attendance_service.records_for_student(student_id)


@router.post("/mark", response_model=BatchMarkResult)
async def mark_attendance_bulk(data: AttendanceBatchMark, user: Modifier):
    """Mark attendance for many students; per-student failures are listed in ``errors``."""
    return await attendance_service.mark_batch(data.parade_id, data.attendance, marked_by=user.user_id)


@router.post("/")
async def mark_attendance(data: AttendanceMark, user: Modifier):
    record, created = await attendance_service.mark_attendance(
        data.parade_id, data.student_id, data.status, data.remarks, marked_by=user.user_id
    )
    return JSONResponse(status_code=201 if created else 200, content=jsonable_encoder(record_out(record)))


@router.put("/{record_id}")
async def update_attendance(record_id: str, data: AttendanceUpdate, user: Modifier):
    record = await attendance_service.update_attendance(record_id, data.status, data.remarks, marked_by=user.user_id)
    return record_out(record)


@router.delete("/{record_id}")
async def delete_attendance(record_id: str, user: SuperAdmin):
    await attendance_service.unmark(record_id)
    return {"message": "Attendance record deleted successfully"}
