"""Shared dependencies: JWT auth, authorization and permission tiers."""
from datetime import datetime, timedelta
from typing import Annotated, Optional

import bcrypt
from beanie import PydanticObjectId
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.config import settings
from app.errors import InvalidCredentials
from app.models.user import User
from app.rbac import AuthorizedPrincipal, Permission, authorize, require_permission as check_permission

security = HTTPBearer(auto_error=False)


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(subject: str, username: str, access_level: str) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode = {"sub": subject, "username": username, "access_level": access_level, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a valid token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise InvalidCredentials("Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidCredentials("Invalid token")
    return user_id


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> User:
    if not credentials:
        raise InvalidCredentials("Access denied. No token provided.")
    user_id = decode_access_token(credentials.credentials)
    try:
        oid = PydanticObjectId(user_id)
    except Exception:
        raise InvalidCredentials("Invalid token")
    user = await User.get(oid)
    if not user or not user.is_active:
        raise InvalidCredentials("User not found or inactive")
    return user


async def get_current_principal(user: Annotated[User, Depends(get_current_user)]) -> AuthorizedPrincipal:
    # Evaluated on every request; allow-list and flag are never cached
    return authorize(user, settings.authorized_admin_list)


def require_permission(permission: Permission):
    async def checker(principal: Annotated[AuthorizedPrincipal, Depends(get_current_principal)]):
        return check_permission(principal, permission, settings.authorized_admin_list)

    return checker


# Type aliases for route injection
CurrentUser = Annotated[User, Depends(get_current_user)]
Reader = Annotated[AuthorizedPrincipal, Depends(require_permission(Permission.READ))]
Modifier = Annotated[AuthorizedPrincipal, Depends(require_permission(Permission.MODIFY))]
SuperAdmin = Annotated[AuthorizedPrincipal, Depends(require_permission(Permission.SUPER_ADMIN))]
