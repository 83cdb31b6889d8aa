from typing import AsyncGenerator, Awaitable, Callable, Dict
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

API = "/api/v1"


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and the test session injected."""
    from buildtrack_auth.core.database import get_session
    from buildtrack_auth.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    # Mock the lifespan to prevent secrets provisioning and database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("buildtrack_auth.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def login(client: AsyncClient, make_user) -> Callable[..., Awaitable[Dict]]:
    """Create a user and log in through the API, returning the login payload."""

    async def _login(
        email: str = "site.manager@example.com",
        password: str = "Constr!uct10nSite",
        role: str = "user",
    ) -> Dict:
        await make_user(email=email, password=password, role=role)
        response = await client.post(f"{API}/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login
