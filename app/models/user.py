"""Operators of the system and their access tier."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, EmailStr, Field

from app.rbac import AccessLevel


class User(Document):
    """User document; access is granted by the allow-list or ``is_authorized``."""

    username: Indexed(str, unique=True)
    hashed_password: str
    full_name: str
    role: str = "admin"
    access_level: AccessLevel = AccessLevel.VIEWER
    is_authorized: bool = False
    email: Optional[EmailStr] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
        use_state_management = True


class UserCreate(BaseModel):
    username: str
    password: str
    full_name: str
    email: Optional[EmailStr] = None
    role: str = "admin"


class UserAccessUpdate(BaseModel):
    access_level: Optional[AccessLevel] = None
    is_authorized: Optional[bool] = None
    is_active: Optional[bool] = None


class UserOut(BaseModel):
    id: str
    username: str
    full_name: str
    role: str
    access_level: AccessLevel
    is_authorized: bool
    is_active: bool
    email: Optional[str] = None
