"""Login, registration and user access management."""
from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel

from app.api.deps import create_access_token, get_password_hash, verify_password
from app.config import settings
from app.errors import DuplicateKey, InvalidCredentials, NotFound
from app.models.user import User, UserAccessUpdate, UserCreate
from app.rbac import AccessLevel, AuthorizedPrincipal, authorize
from app.services.documents import safe_object_id

logger = logging.getLogger(__name__)


class LoginResult(BaseModel):
    token: str
    principal: AuthorizedPrincipal


async def authenticate(username: str, password: str) -> User:
    """Unknown user, inactive user and wrong password all fail the same way."""
    user = await User.find_one(User.username == username)
    if not user or not user.is_active:
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()
    return user


async def login(username: str, password: str) -> LoginResult:
    user = await authenticate(username, password)
    principal = authorize(user, settings.authorized_admin_list)
    token = create_access_token(str(user.id), user.username, principal.access_level.value)
    logger.info(f"User {user.username} logged in with access level {principal.access_level.value}")
    return LoginResult(token=token, principal=principal)


async def register(data: UserCreate) -> User:
    """New accounts start as unauthorized viewers."""
    username = data.username.strip()
    if await User.find_one(User.username == username):
        raise DuplicateKey("Username already exists")
    user = User(
        username=username,
        hashed_password=get_password_hash(data.password),
        full_name=data.full_name,
        email=data.email,
        role=data.role,
        access_level=AccessLevel.VIEWER,
        is_authorized=False,
    )
    await user.insert()
    return user


async def update_user_access(user_id: str, data: UserAccessUpdate) -> User:
    oid = safe_object_id(user_id)
    user = await User.get(oid) if oid else None
    if not user:
        raise NotFound("User not found")
    for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, key, value)
    user.updated_at = datetime.utcnow()
    await user.save()
    return user


async def list_users() -> list[User]:
    return await User.find_all().sort("username").to_list()
