import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.anyio


async def register_user(async_client: AsyncClient, email: str, password: str):
    return await async_client.post(
        "/api/user/register", json={"email": email, "password": password, "username": "test"}
    )


async def test_register_user(async_client: AsyncClient):
    response = await register_user(async_client, "test@example.net", "1234")

    assert response.status_code == 201
    assert response.json()["data"]["email"] == "test@example.net"


async def test_register_user_already_exists(async_client: AsyncClient, registered_user):
    response = await register_user(async_client, registered_user["email"], "1234")

    assert response.status_code == 400
    assert "already exists" in response.json()["message"]


async def test_login_and_me(async_client: AsyncClient):
    await register_user(async_client, "test@example.net", "1234")

    token = await async_client.post(
        "/api/user/token", json={"email": "test@example.net", "password": "1234"}
    )
    assert token.status_code == 200
    access_token = token.json()["access_token"]

    me = await async_client.get("/api/user/me", headers={"Authorization": f"Bearer {access_token}"})

    assert me.status_code == 200
    assert me.json()["data"]["email"] == "test@example.net"
    assert me.json()["data"]["role"] == "user"
    assert "password_hash" not in me.json()["data"]


async def test_login_wrong_password(async_client: AsyncClient, registered_user):
    response = await async_client.post(
        "/api/user/token", json={"email": registered_user["email"], "password": "wrong"}
    )

    assert response.status_code == 401


async def test_me_without_token(async_client: AsyncClient):
    response = await async_client.get("/api/user/me")

    assert response.status_code == 401
