"""Parade lifecycle."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.errors import ValidationFailure
from app.models.parade import Parade, ParadeCreate, ParadeStatus, ParadeUpdate
from app.services.documents import get_parade

# Fields a client may change but never clear
NON_NULLABLE_FIELDS = ("name", "type", "date", "time", "status", "requirements")


def default_parade_status(parade_date: datetime, now: Optional[datetime] = None) -> ParadeStatus:
    now = now or datetime.utcnow()
    return ParadeStatus.UPCOMING if parade_date > now else ParadeStatus.COMPLETED


async def create_parade(data: ParadeCreate, created_by: str) -> Parade:
    parade = Parade(
        name=data.name.strip(),
        type=data.type,
        date=data.date,
        time=data.time,
        description=data.description,
        location=data.location,
        instructor=data.instructor,
        max_participants=data.max_participants,
        requirements=data.requirements,
        status=data.status or default_parade_status(data.date),
        created_by=created_by,
    )
    await parade.insert()
    return parade


async def update_parade(parade_id: str, data: ParadeUpdate) -> Parade:
    parade = await get_parade(parade_id)
    update_data = data.model_dump(exclude_unset=True)
    cleared = [key for key in NON_NULLABLE_FIELDS if key in update_data and update_data[key] is None]
    if cleared:
        raise ValidationFailure(f"{', '.join(cleared)} must not be null")
    for key in ("name", "time"):
        if key in update_data and not update_data[key].strip():
            raise ValidationFailure(f"{key} must not be blank")
    for key, value in update_data.items():
        setattr(parade, key, value)
    parade.updated_at = datetime.utcnow()
    await parade.save()
    return parade


async def set_parade_status(parade_id: str, status: ParadeStatus) -> Parade:
    parade = await get_parade(parade_id)
    parade.status = status
    parade.updated_at = datetime.utcnow()
    await parade.save()
    return parade


async def delete_parade(parade_id: str) -> None:
    parade = await get_parade(parade_id)
    await parade.delete()


async def list_parades(
    status: Optional[ParadeStatus] = None,
    parade_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Parade]:
    query: dict = {}
    if status:
        query["status"] = status.value
    if parade_type:
        query["type"] = parade_type
    if start or end:
        query["date"] = {}
        if start:
            query["date"]["$gte"] = start
        if end:
            query["date"]["$lte"] = end
    return await Parade.find(query).sort("-date").to_list()
