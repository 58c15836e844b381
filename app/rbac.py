"""Access tiers and the authorization decision functions.

Two independent sources grant access: a static allow-list of usernames from
configuration, and the ``is_authorized`` flag stored on the user. Permission
tiers form a total order ``read < modify < super_admin``.
"""
from __future__ import annotations

from enum import Enum
from typing import Protocol, Sequence

from pydantic import BaseModel

from app.errors import InsufficientPermission, NotAuthorized


class AccessLevel(str, Enum):
    VIEWER = "viewer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Permission(str, Enum):
    READ = "read"
    MODIFY = "modify"
    SUPER_ADMIN = "super_admin"


class PrincipalLike(Protocol):
    username: str
    access_level: AccessLevel
    is_authorized: bool


class AuthorizedPrincipal(BaseModel):
    user_id: str
    username: str
    full_name: str = ""
    role: str = "admin"
    access_level: AccessLevel
    allow_listed: bool = False


def super_admin_username(allow_list: Sequence[str]) -> str | None:
    return allow_list[0] if allow_list else None


def resolve_access_level(
    username: str,
    stored_level: AccessLevel | str | None,
    allow_list: Sequence[str],
) -> AccessLevel:
    """Allow-list membership overrides the stored tier."""
    if username in allow_list:
        if username == super_admin_username(allow_list):
            return AccessLevel.SUPER_ADMIN
        return AccessLevel.ADMIN
    if not stored_level:
        return AccessLevel.VIEWER
    return AccessLevel(stored_level)


def is_authorized(user: PrincipalLike, allow_list: Sequence[str]) -> bool:
    return user.username in allow_list or bool(user.is_authorized)


def authorize(user: PrincipalLike, allow_list: Sequence[str]) -> AuthorizedPrincipal:
    if not is_authorized(user, allow_list):
        raise NotAuthorized()
    return AuthorizedPrincipal(
        user_id=str(getattr(user, "id", "") or ""),
        username=user.username,
        full_name=getattr(user, "full_name", "") or "",
        role=getattr(user, "role", "admin") or "admin",
        access_level=resolve_access_level(user.username, user.access_level, allow_list),
        allow_listed=user.username in allow_list,
    )


def has_permission(
    principal: AuthorizedPrincipal,
    permission: Permission,
    allow_list: Sequence[str],
) -> bool:
    if permission == Permission.READ:
        return True
    if permission == Permission.MODIFY:
        return principal.username in allow_list or principal.access_level in (
            AccessLevel.ADMIN,
            AccessLevel.SUPER_ADMIN,
        )
    return (
        principal.username == super_admin_username(allow_list)
        or principal.access_level == AccessLevel.SUPER_ADMIN
    )


def require_permission(
    principal: AuthorizedPrincipal,
    permission: Permission,
    allow_list: Sequence[str],
) -> AuthorizedPrincipal:
    if not has_permission(principal, permission, allow_list):
        if permission == Permission.SUPER_ADMIN:
            raise InsufficientPermission("Access denied. Super admin privileges required.")
        raise InsufficientPermission("Access denied. You do not have permission to modify data.")
    return principal
