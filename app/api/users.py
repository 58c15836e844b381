"""User access management (super admin only)."""
from fastapi import APIRouter

from app.api.deps import SuperAdmin
from app.models.user import User, UserAccessUpdate, UserOut
from app.services.auth import list_users as list_all_users, update_user_access

router = APIRouter()


def _user_out(u: User) -> UserOut:
    return UserOut(
        id=str(u.id),
        username=u.username,
        full_name=u.full_name,
        role=u.role,
        access_level=u.access_level,
        is_authorized=u.is_authorized,
        is_active=u.is_active,
        email=u.email,
    )


@router.get("/", response_model=list[UserOut])
async def list_users(admin: SuperAdmin):
    return [_user_out(u) for u in await list_all_users()]


@router.patch("/{user_id}/access", response_model=UserOut)
async def set_user_access(user_id: str, data: UserAccessUpdate, admin: SuperAdmin):
    """Grant or revoke access and change the stored access tier."""
    return _user_out(await update_user_access(user_id, data))
