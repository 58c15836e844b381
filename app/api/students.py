"""Student CRUD and spreadsheet import."""
from typing import Optional

from fastapi import APIRouter, File, Query, UploadFile

from app.api.deps import Modifier, Reader, SuperAdmin
from app.errors import ValidationFailure
from app.models.student import Branch, Category, Student, StudentCreate, StudentUpdate
from app.services import students as student_service
from app.services.documents import get_student as load_student

router = APIRouter()


def _student_out(s: Student) -> dict:
    return {
        "id": str(s.id),
        "name": s.name,
        "regimental_number": s.regimental_number,
        "roll_number": s.roll_number,
        "category": s.category,
        "branch": s.branch,
        "rank": s.rank,
        "email": s.email,
        "phone": s.phone,
        "address": s.address,
        "date_of_birth": s.date_of_birth,
        "enrollment_date": s.enrollment_date,
        "is_active": s.is_active,
        "attendance_rate": s.attendance_rate,
    }


@router.get("/")
async def list_students(
    user: Reader,
    category: Optional[Category] = None,
    branch: Optional[Branch] = None,
    search: Optional[str] = Query(None, description="Search by name, regimental/roll number, rank or branch"),
):
    students = await student_service.list_students(category=category, branch=branch, search=search)
    return [_student_out(s) for s in students]


@router.get("/filters/branches")
async def list_branches(user: Reader):
    return student_service.list_branches()


@router.get("/{student_id}")
async def get_student(student_id: str, user: Reader):
    return _student_out(await load_student(student_id))


@router.post("/", status_code=201)
async def create_student(data: StudentCreate, user: Modifier):
    return _student_out(await student_service.create_student(data))


@router.put("/{student_id}")
async def update_student(student_id: str, data: StudentUpdate, user: Modifier):
    return _student_out(await student_service.update_student(student_id, data))


@router.delete("/{student_id}")
async def archive_student(student_id: str, user: SuperAdmin):
    """Archive student (soft delete: set is_active=False)."""
    await student_service.archive_student(student_id)
    return {"message": "Student deleted successfully"}


@router.post("/upload")
async def upload_students(user: Modifier, excel: UploadFile = File(...)):
    """Bulk import students from the first sheet of an Excel or CSV file."""
    content = await excel.read()
    if not content:
        raise ValidationFailure("No file uploaded")
    rows = student_service.parse_student_sheet(content, excel.filename or "")
    result = await student_service.import_students(rows)
    return result.model_dump()
