"""Cadets enrolled in the unit."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    C = "C"
    B2 = "B2"
    B1 = "B1"


class Branch(str, Enum):
    CSE = "Computer Science & Engineering (CSE)"
    AIML = "CSE – Artificial Intelligence & Machine Learning (AIML)"
    CSDS = "CSE – Data Science (CS DS)"
    ECE = "Electronics & Communication Engineering (ECE)"
    IT = "Information Technology (IT)"
    EEE = "Electrical & Electronics Engineering (EEE)"
    ME = "Mechanical Engineering (ME)"
    CE = "Civil Engineering (CE)"


def _upper(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().upper()
    return value or None


def _lower(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class Student(Document):
    """Student document; ``attendance_rate`` is derived from attendance records."""

    name: str
    regimental_number: Indexed(str, unique=True)
    roll_number: Optional[str] = None
    category: Category
    branch: Optional[Branch] = None
    rank: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: str
    date_of_birth: Optional[date] = None
    enrollment_date: datetime = Field(default_factory=datetime.utcnow)
    is_active: bool = True
    attendance_rate: float = Field(default=0.0, ge=0, le=100)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "students"
        use_state_management = True


class StudentCreate(BaseModel):
    name: str
    regimental_number: str
    roll_number: Optional[str] = None
    category: Category
    branch: Optional[Branch] = None
    rank: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: str
    date_of_birth: Optional[date] = None

    @field_validator("name", "rank", "address")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("regimental_number")
    @classmethod
    def _normalize_regimental_number(cls, value: str) -> str:
        value = _upper(value)
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("roll_number")
    @classmethod
    def _normalize_roll_number(cls, value: Optional[str]) -> Optional[str]:
        return _upper(value)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _lower(value)


class StudentUpdate(BaseModel):
    """All fields optional; attendance_rate is not updatable."""
    name: Optional[str] = None
    regimental_number: Optional[str] = None
    roll_number: Optional[str] = None
    category: Optional[Category] = None
    branch: Optional[Branch] = None
    rank: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None

    @field_validator("regimental_number", "roll_number")
    @classmethod
    def _normalize_numbers(cls, value: Optional[str]) -> Optional[str]:
        return _upper(value)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _lower(value)
