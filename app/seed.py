"""Seed the super admin account if not present."""
import logging

from app.api.deps import get_password_hash
from app.config import settings
from app.models.user import User
from app.rbac import AccessLevel, super_admin_username

logger = logging.getLogger(__name__)


async def seed_admin():
    username = super_admin_username(settings.authorized_admin_list)
    if not username:
        return
    existing = await User.find_one(User.username == username)
    if existing:
        return
    if not settings.bootstrap_admin_password:
        logger.warning(f"BOOTSTRAP_ADMIN_PASSWORD not set; super admin '{username}' was not created")
        return
    await User(
        username=username,
        hashed_password=get_password_hash(settings.bootstrap_admin_password),
        full_name="Chief Administrator",
        role="admin",
        email=settings.bootstrap_admin_email or None,
        access_level=AccessLevel.SUPER_ADMIN,
        is_authorized=True,
    ).insert()
    logger.info(f"Created super admin '{username}'")
