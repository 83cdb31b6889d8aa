from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable, Optional

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

TEST_ROOT = Path(__file__).resolve().parent
# Local overrides first; the defaults below only fill what is still unset.
load_dotenv(TEST_ROOT / ".env", override=False)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# The engine and the logging/monitoring flags are read at import time, so the
# environment must be in place before any buildtrack_auth module is imported.
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTO_INIT_SECRETS", "false")
os.environ.setdefault("AUTO_VERIFY_EMAIL", "true")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-0123456789abcdef0123456789abcdef")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef0123456789abcdef")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-0123456789abcdef")
os.environ.setdefault("LOGFIRE_ENABLED", "false")
os.environ.setdefault("ENABLE_FILE_LOGGING", "false")

from buildtrack_auth.auth import AuthService, TokenManager  # noqa: E402
from buildtrack_auth.auth.crypto_utils import hash_password  # noqa: E402
from buildtrack_auth.core.database import create_all, create_sessionmaker  # noqa: E402
from buildtrack_auth.core.database.base import utc_now  # noqa: E402
from buildtrack_auth.core.database.entities import User  # noqa: E402
from buildtrack_auth.core.database.repositories import AuthRepoBundle, build_auth_repos  # noqa: E402
from buildtrack_auth.server.core.config import reload_settings  # noqa: E402

STRONG_PASSWORD = "Constr!uct10nSite"
OTHER_STRONG_PASSWORD = "N3w#Scaffold-Plan"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Rebuild settings from the (possibly monkeypatched) environment for every test."""
    yield reload_settings()
    reload_settings()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database with all auth tables, one per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def repos(session: AsyncSession) -> AuthRepoBundle:
    return build_auth_repos(session)


@pytest.fixture
def token_manager(repos: AuthRepoBundle) -> TokenManager:
    return TokenManager(repos)


@pytest.fixture
def auth_service(repos: AuthRepoBundle, token_manager: TokenManager) -> AuthService:
    return AuthService(repos, token_manager)


@pytest.fixture
def make_user(repos: AuthRepoBundle) -> Callable[..., Awaitable[User]]:
    """Factory persisting a verified, active user."""

    async def _make_user(
        email: str = "site.manager@example.com",
        password: str = STRONG_PASSWORD,
        role: str = "user",
        is_active: bool = True,
        verified: bool = True,
        first_name: Optional[str] = "Sami",
    ) -> User:
        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
            first_name=first_name,
            email_verified_at=utc_now() if verified else None,
        )
        return await repos.users.create(user)

    return _make_user
