import pytest

from app.api.deps import decode_access_token, verify_password
from app.config import settings
from app.errors import DuplicateKey, InvalidCredentials, NotAuthorized, NotFound
from app.models import User, UserAccessUpdate, UserCreate
from app.rbac import AccessLevel
from app.seed import seed_admin
from app.services import auth as svc


async def test_register_creates_unauthorized_viewer():
    user = await svc.register(UserCreate(username="carol", password="secret123", full_name="Carol"))

    assert user.access_level == AccessLevel.VIEWER
    assert user.is_authorized is False
    assert verify_password("secret123", user.hashed_password)
    with pytest.raises(DuplicateKey):
        await svc.register(UserCreate(username="carol", password="other", full_name="Carol Again"))


async def test_login_failures_look_the_same(make_user):
    await make_user("alice")
    await make_user("ghost", is_active=False)

    messages = set()
    for username, password in (("alice", "wrong"), ("nobody", "secret123"), ("ghost", "secret123")):
        with pytest.raises(InvalidCredentials) as exc:
            await svc.login(username, password)
        messages.add(exc.value.message)

    assert messages == {"Invalid credentials"}


async def test_allow_listed_login_issues_token(make_user):
    user = await make_user("alice")

    result = await svc.login("alice", "secret123")

    assert result.principal.access_level == AccessLevel.SUPER_ADMIN
    assert decode_access_token(result.token) == str(user.id)


async def test_registered_user_needs_approval(make_user):
    user = await make_user("carol")

    with pytest.raises(NotAuthorized):
        await svc.login("carol", "secret123")

    await svc.update_user_access(str(user.id), UserAccessUpdate(is_authorized=True, access_level=AccessLevel.ADMIN))
    result = await svc.login("carol", "secret123")

    assert result.principal.access_level == AccessLevel.ADMIN
    assert not result.principal.allow_listed


async def test_update_access_unknown_user():
    with pytest.raises(NotFound):
        await svc.update_user_access("65f0000000000000000000ff", UserAccessUpdate(is_authorized=True))


def test_decode_rejects_garbage_token():
    with pytest.raises(InvalidCredentials):
        decode_access_token("not-a-token")


async def test_seed_admin_requires_bootstrap_password(monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_password", "")
    await seed_admin()
    assert await User.find_one(User.username == "alice") is None

    monkeypatch.setattr(settings, "bootstrap_admin_password", "first-login")
    await seed_admin()
    await seed_admin()

    admins = await User.find(User.username == "alice").to_list()
    assert len(admins) == 1
    assert admins[0].access_level == AccessLevel.SUPER_ADMIN
    assert admins[0].is_authorized
