import os
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient

os.environ["ENV_STATE"] = "test"

from eventapi.database import database, user_table  # noqa: E402
from eventapi.main import app  # noqa: E402
from eventapi.security import create_access_token, get_password_hash  # noqa: E402
from eventapi.storage import get_storage  # noqa: E402


class InMemoryStorage:
    """Stands in for MinioStorage so tests never reach a real bucket."""

    def __init__(self):
        self.objects: Dict[str, tuple] = {}

    def ensure_bucket(self) -> None:
        pass

    def put(self, object_name: str, data: bytes, content_type: str) -> None:
        self.objects[object_name] = (data, content_type)

    def get(self, object_name: str) -> bytes:
        return self.objects[object_name][0]

    def remove(self, object_name: str) -> None:
        self.objects.pop(object_name, None)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
async def db() -> AsyncGenerator:
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture()
def storage() -> InMemoryStorage:
    fake = InMemoryStorage()
    app.dependency_overrides[get_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture()
async def async_client(db, storage) -> AsyncGenerator:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _insert_user(email: str, role: str = "user") -> dict:
    user_id = await database.execute(
        user_table.insert().values(
            email=email,
            username=email.split("@")[0],
            password_hash=get_password_hash("1234"),
            role=role,
        )
    )
    return {"id": user_id, "email": email, "role": role}


@pytest.fixture()
async def registered_user(db) -> dict:
    return await _insert_user("alice@example.net")


@pytest.fixture()
async def other_user(db) -> dict:
    return await _insert_user("bob@example.net")


@pytest.fixture()
async def admin_user(db) -> dict:
    return await _insert_user("admin@example.net", role="admin")


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user['email'])}"}


@pytest.fixture()
def user_headers(registered_user) -> dict:
    return auth_headers(registered_user)


@pytest.fixture()
def other_headers(other_user) -> dict:
    return auth_headers(other_user)


@pytest.fixture()
def admin_headers(admin_user) -> dict:
    return auth_headers(admin_user)
