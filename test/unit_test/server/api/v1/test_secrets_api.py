"""
Tests for the admin-only secrets status endpoint.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

STATUS = "/api/v1/secrets/status"


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def test_admin_sees_status_without_values(client: AsyncClient, login):
    tokens = (await login(email="admin@example.com", role="admin"))["tokens"]

    response = await client.get(STATUS, headers=_auth(tokens["access_token"]))

    assert response.status_code == 200
    statuses = {s["name"]: s for s in response.json()["secrets"]}
    assert statuses["JWT_ACCESS_SECRET"]["exists"] is True
    assert statuses["ENCRYPTION_KEY"]["exists"] is True
    assert "test-access-secret" not in response.text


async def test_missing_secret_is_reported(client: AsyncClient, login, monkeypatch):
    tokens = (await login(email="admin@example.com", role="admin"))["tokens"]
    monkeypatch.delenv("ENCRYPTION_KEY", raising=False)

    response = await client.get(STATUS, headers=_auth(tokens["access_token"]))

    statuses = {s["name"]: s for s in response.json()["secrets"]}
    assert statuses["ENCRYPTION_KEY"]["exists"] is False
    assert "ENCRYPTION_KEY" in response.json()["message"]


async def test_regular_user_is_forbidden(client: AsyncClient, login):
    tokens = (await login())["tokens"]

    response = await client.get(STATUS, headers=_auth(tokens["access_token"]))

    assert response.status_code == 403
    data = response.json()
    assert data["message"] == "Insufficient permissions"
    assert data["required_roles"] == ["admin"]


async def test_anonymous_is_unauthorized(client: AsyncClient):
    assert (await client.get(STATUS)).status_code == 401
