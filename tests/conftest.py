import itertools
import os
from datetime import datetime

# Settings are read at import time
os.environ["DEBUG"] = "true"
os.environ["AUTHORIZED_ADMINS"] = "alice,bob"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["SMTP_HOST"] = ""

import pytest
import pytest_asyncio
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from app.api.deps import create_access_token, get_password_hash
from app.models import DOCUMENT_MODELS, Branch, Category, Parade, ParadeStatus, ParadeType, Student, User
from app.rbac import AccessLevel

_seq = itertools.count(1)


@pytest_asyncio.fixture(autouse=True)
async def db():
    client = AsyncMongoMockClient()
    database = client.get_database("ncc_test")
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
def make_student():
    async def _make(**overrides) -> Student:
        n = next(_seq)
        data = {
            "name": f"Cadet {n:03d}",
            "regimental_number": f"UP2024SDA{n:04d}",
            "category": Category.B1,
            "branch": Branch.CSE,
            "rank": "Cadet",
            "address": "Hostel Block A",
        }
        data.update(overrides)
        student = Student(**data)
        await student.insert()
        return student

    return _make


@pytest.fixture
def make_parade():
    async def _make(**overrides) -> Parade:
        n = next(_seq)
        data = {
            "name": f"Parade {n}",
            "type": ParadeType.MORNING,
            "date": datetime(2024, 3, 4, 6, 30),
            "time": "06:30",
            "status": ParadeStatus.COMPLETED,
            "created_by": "000000000000000000000000",
        }
        data.update(overrides)
        parade = Parade(**data)
        await parade.insert()
        return parade

    return _make


@pytest.fixture
def make_user():
    async def _make(
        username: str,
        password: str = "secret123",
        access_level: AccessLevel = AccessLevel.VIEWER,
        is_authorized: bool = False,
        is_active: bool = True,
    ) -> User:
        user = User(
            username=username,
            hashed_password=get_password_hash(password),
            full_name=username.title(),
            access_level=access_level,
            is_authorized=is_authorized,
            is_active=is_active,
        )
        await user.insert()
        return user

    return _make


@pytest.fixture
def auth_header():
    def _header(user: User) -> dict[str, str]:
        token = create_access_token(str(user.id), user.username, AccessLevel(user.access_level).value)
        return {"Authorization": f"Bearer {token}"}

    return _header
