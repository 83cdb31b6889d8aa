"""
Tests for the /api/v1/sessions endpoints.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

SESSIONS = "/api/v1/sessions"
CREDENTIALS = {"email": "site.manager@example.com", "password": "Constr!uct10nSite"}


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def _second_login(client: AsyncClient) -> dict:
    response = await client.post("/api/v1/auth/login", json=CREDENTIALS, headers={"User-Agent": "SiteTablet/2.1"})
    return response.json()["tokens"]


async def test_list_sessions(client: AsyncClient, login):
    tokens = (await login())["tokens"]
    other = await _second_login(client)

    response = await client.get(SESSIONS, headers=_auth(tokens["access_token"]))

    assert response.status_code == 200
    data = response.json()
    assert data["current_session_id"] == tokens["session_id"]
    assert {s["session_id"] for s in data["sessions"]} == {tokens["session_id"], other["session_id"]}
    for session in data["sessions"]:
        assert "access_token_hash" not in session
        assert "refresh_token_hash" not in session


async def test_list_requires_auth(client: AsyncClient):
    response = await client.get(SESSIONS)
    assert response.status_code == 401


async def test_invalid_token_is_rejected(client: AsyncClient):
    response = await client.get(SESSIONS, headers=_auth("not.a.jwt"))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authentication token"


async def test_terminate_session(client: AsyncClient, login):
    tokens = (await login())["tokens"]
    other = await _second_login(client)

    response = await client.delete(f"{SESSIONS}/{other['session_id']}", headers=_auth(tokens["access_token"]))
    assert response.status_code == 200
    assert response.json()["message"] == "Session terminated"

    assert (await client.get(SESSIONS, headers=_auth(other["access_token"]))).status_code == 401
    remaining = (await client.get(SESSIONS, headers=_auth(tokens["access_token"]))).json()["sessions"]
    assert [s["session_id"] for s in remaining] == [tokens["session_id"]]


async def test_terminate_unknown_session(client: AsyncClient, login):
    tokens = (await login())["tokens"]
    response = await client.delete(f"{SESSIONS}/does-not-exist", headers=_auth(tokens["access_token"]))
    assert response.status_code == 404


async def test_cannot_terminate_foreign_session(client: AsyncClient, login):
    victim = (await login())["tokens"]
    attacker = (await login(email="attacker@example.com"))["tokens"]

    response = await client.delete(f"{SESSIONS}/{victim['session_id']}", headers=_auth(attacker["access_token"]))

    assert response.status_code == 404
    assert (await client.get(SESSIONS, headers=_auth(victim["access_token"]))).status_code == 200


async def test_terminate_other_sessions(client: AsyncClient, login):
    tokens = (await login())["tokens"]
    first = await _second_login(client)
    second = await _second_login(client)

    response = await client.delete(SESSIONS, headers=_auth(tokens["access_token"]))

    assert response.status_code == 200
    assert response.json()["revoked_sessions"] == 2
    assert (await client.get(SESSIONS, headers=_auth(tokens["access_token"]))).status_code == 200
    for other in (first, second):
        assert (await client.get(SESSIONS, headers=_auth(other["access_token"]))).status_code == 401
