"""Parade scheduling."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter

from app.api.deps import Modifier, Reader, SuperAdmin
from app.models.parade import Parade, ParadeCreate, ParadeStatus, ParadeStatusUpdate, ParadeType, ParadeUpdate
from app.models.user import User
from app.services import parades as parade_service
from app.services.documents import get_parade as load_parade, object_ids

router = APIRouter()


async def _creators(parades: list[Parade]) -> dict[str, User]:
    users = await User.find({"_id": {"$in": object_ids({p.created_by for p in parades})}}).to_list()
    return {str(u.id): u for u in users}


def _parade_out(p: Parade, creators: dict[str, User]) -> dict:
    creator = creators.get(p.created_by)
    return {
        "id": str(p.id),
        "name": p.name,
        "type": p.type,
        "date": p.date,
        "time": p.time,
        "description": p.description,
        "location": p.location,
        "instructor": p.instructor,
        "max_participants": p.max_participants,
        "requirements": p.requirements,
        "status": p.status,
        "created_by": {
            "id": p.created_by,
            "full_name": creator.full_name if creator else None,
            "username": creator.username if creator else None,
        },
        "created_at": p.created_at,
    }


async def _one(p: Parade) -> dict:
    return _parade_out(p, await _creators([p]))


@router.get("/")
async def list_parades(
    user: Reader,
    status: Optional[ParadeStatus] = None,
    type: Optional[ParadeType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    parades = await parade_service.list_parades(
        status=status,
        parade_type=type.value if type else None,
        start=start_date,
        end=end_date,
    )
    creators = await _creators(parades)
    return [_parade_out(p, creators) for p in parades]


@router.get("/{parade_id}")
async def get_parade(parade_id: str, user: Reader):
    return await _one(await load_parade(parade_id))


@router.post("/", status_code=201)
async def create_parade(data: ParadeCreate, user: Modifier):
    return await _one(await parade_service.create_parade(data, created_by=user.user_id))


@router.put("/{parade_id}")
async def update_parade(parade_id: str, data: ParadeUpdate, user: Modifier):
    return await _one(await parade_service.update_parade(parade_id, data))


@router.patch("/{parade_id}/status")
async def update_parade_status(parade_id: str, data: ParadeStatusUpdate, user: Modifier):
    return await _one(await parade_service.set_parade_status(parade_id, data.status))


@router.delete("/{parade_id}")
async def delete_parade(parade_id: str, user: SuperAdmin):
    await parade_service.delete_parade(parade_id)
    return {"message": "Parade deleted successfully"}
