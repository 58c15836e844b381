"""Student records, duplicate checks and spreadsheet import."""
from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Any, Mapping, Optional

import pandas as pd
from pydantic import BaseModel, Field, ValidationError
from pymongo.errors import DuplicateKeyError

from app.errors import DuplicateKey, ValidationFailure
from app.models.student import Branch, Category, Student, StudentCreate, StudentUpdate
from app.services.documents import get_student

logger = logging.getLogger(__name__)

# Accepted spreadsheet headers for each field, first match wins
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "regimental_number": ("Regimental Number", "RegimentalNumber", "regimental_number"),
    "name": ("Name", "Student Name", "name"),
    "category": ("Category", "category"),
    "rank": ("Rank", "rank"),
    "email": ("Email", "email"),
    "phone": ("Phone", "phone"),
    "address": ("Address", "address"),
    "roll_number": ("Roll Number", "RollNumber", "roll_number"),
    "branch": ("Branch", "branch"),
}

REQUIRED_IMPORT_FIELDS = ("name", "regimental_number", "category", "rank", "address")


class ImportResult(BaseModel):
    added: int = 0
    duplicates: int = 0
    errors: list[str] = Field(default_factory=list)


def list_branches() -> list[str]:
    return [b.value for b in Branch]


async def _ensure_unique(
    regimental_number: Optional[str],
    roll_number: Optional[str],
    exclude_id: Optional[str] = None,
) -> None:
    if regimental_number:
        existing = await Student.find_one({"regimental_number": regimental_number})
        if existing and str(existing.id) != exclude_id:
            raise DuplicateKey("Regimental number already exists")
    if roll_number:
        existing = await Student.find_one({"roll_number": roll_number})
        if existing and str(existing.id) != exclude_id:
            raise DuplicateKey("Roll number already exists")


async def create_student(data: StudentCreate) -> Student:
    await _ensure_unique(data.regimental_number, data.roll_number)
    student = Student(**data.model_dump())
    try:
        await student.insert()
    except DuplicateKeyError:
        raise DuplicateKey("Regimental number or roll number already exists")
    return student


async def update_student(student_id: str, data: StudentUpdate) -> Student:
    student = await get_student(student_id)
    update_data = data.model_dump(exclude_unset=True)
    for key in ("name", "rank", "address", "regimental_number"):
        if key in update_data and not (update_data[key] or "").strip():
            raise ValidationFailure(f"{key} must not be blank")
    if "category" in update_data and update_data["category"] is None:
        raise ValidationFailure("category must not be null")
    await _ensure_unique(
        update_data.get("regimental_number"),
        update_data.get("roll_number"),
        exclude_id=str(student.id),
    )
    for key, value in update_data.items():
        setattr(student, key, value)
    student.updated_at = datetime.utcnow()
    try:
        await student.save()
    except DuplicateKeyError:
        raise DuplicateKey("Regimental number or roll number already exists")
    return student


async def archive_student(student_id: str) -> Student:
    """Soft delete; attendance history stays in place."""
    student = await get_student(student_id)
    student.is_active = False
    student.updated_at = datetime.utcnow()
    await student.save()
    return student


async def list_students(
    category: Optional[Category] = None,
    branch: Optional[Branch] = None,
    search: Optional[str] = None,
) -> list[Student]:
    query: dict[str, Any] = {"is_active": True}
    if category:
        query["category"] = category.value
    if branch:
        query["branch"] = branch.value
    if search and search.strip():
        term = search.strip()
        query["$or"] = [
            {field: {"$regex": term, "$options": "i"}}
            for field in ("name", "regimental_number", "roll_number", "rank", "branch")
        ]
    return await Student.find(query).sort("name").to_list()


def parse_student_sheet(content: bytes, filename: str = "") -> list[dict[str, Any]]:
    """Read the first sheet of an Excel (or CSV) upload into row mappings."""
    buffer = io.BytesIO(content)
    try:
        if filename.lower().endswith(".csv"):
            df = pd.read_csv(buffer, dtype=str)
        else:
            df = pd.read_excel(buffer, sheet_name=0, dtype=str)
    except Exception as exc:
        raise ValidationFailure(f"Could not read spreadsheet: {exc}") from exc
    df = df.fillna("")
    return df.to_dict(orient="records")


def _cell(row: Mapping[str, Any], field: str) -> str:
    for header in COLUMN_ALIASES[field]:
        value = row.get(header)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def student_from_row(row: Mapping[str, Any]) -> StudentCreate:
    values = {field: _cell(row, field) for field in COLUMN_ALIASES}
    missing = [f for f in REQUIRED_IMPORT_FIELDS if not values[f]]
    if missing:
        raise ValidationFailure(
            "Row skipped: Missing required fields - "
            f"Name: {values['name']}, Regimental Number: {values['regimental_number'].upper()}, "
            f"Category: {values['category']}, Rank: {values['rank']}, Address: {values['address']}"
        )
    data = {k: v for k, v in values.items() if v}
    try:
        return StudentCreate(**data)
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise ValidationFailure(
            f"Row {values['regimental_number'].upper()} skipped: invalid {fields}"
        ) from exc


async def import_students(rows: list[Mapping[str, Any]]) -> ImportResult:
    """Insert each valid row; duplicates are counted and bad rows reported."""
    result = ImportResult()
    for row in rows:
        try:
            data = student_from_row(row)
        except ValidationFailure as exc:
            result.errors.append(exc.message)
            continue
        try:
            await _ensure_unique(data.regimental_number, data.roll_number)
        except DuplicateKey:
            result.duplicates += 1
            continue
        try:
            await Student(**data.model_dump()).insert()
        except DuplicateKeyError:
            result.duplicates += 1
            continue
        result.added += 1
    logger.info(f"Student import: {result.added} added, {result.duplicates} duplicates, {len(result.errors)} errors")
    return result
