"""Scheduled parades against which attendance is recorded."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from beanie import Document
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, IndexModel


class ParadeType(str, Enum):
    MORNING = "Morning Parade"
    EVENING = "Evening Parade"
    SPECIAL_DRILL = "Special Drill"
    PHYSICAL_TRAINING = "Physical Training"
    WEAPON_TRAINING = "Weapon Training"
    CEREMONIAL = "Ceremonial Parade"
    CAMP_ACTIVITY = "Camp Activity"
    OTHER = "Other"


class ParadeStatus(str, Enum):
    UPCOMING = "Upcoming"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stored dates are naive UTC, same as every other timestamp
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Parade(Document):
    name: str
    type: ParadeType
    date: datetime
    time: str
    description: Optional[str] = None
    location: Optional[str] = None
    instructor: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)
    requirements: list[str] = Field(default_factory=list)
    status: ParadeStatus
    created_by: str  # user_id
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "parades"
        use_state_management = True
        indexes = [
            IndexModel([("date", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("type", ASCENDING)]),
        ]


class ParadeCreate(BaseModel):
    name: str
    type: ParadeType
    date: datetime
    time: str
    description: Optional[str] = None
    location: Optional[str] = None
    instructor: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)
    requirements: list[str] = Field(default_factory=list)
    status: Optional[ParadeStatus] = None

    @field_validator("date")
    @classmethod
    def _to_naive_utc(cls, value: datetime) -> datetime:
        return _naive_utc(value)

    @field_validator("requirements")
    @classmethod
    def _strip_requirements(cls, value: list[str]) -> list[str]:
        return [r.strip() for r in value if r and r.strip()]


class ParadeUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[ParadeType] = None
    date: Optional[datetime] = None
    time: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    instructor: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=1)
    requirements: Optional[list[str]] = None
    status: Optional[ParadeStatus] = None

    @field_validator("date")
    @classmethod
    def _to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(value)


class ParadeStatusUpdate(BaseModel):
    status: ParadeStatus
