"""
Request-scoped dependencies.

One ``AsyncSession`` per request feeds a repository bundle; the token manager
and the auth service are built on top of it. FastAPI caches each dependency
per request, so every consumer in a request shares the same unit of work.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from buildtrack_auth.auth import AuthService, TokenManager
from buildtrack_auth.core.database import get_session
from buildtrack_auth.core.database.repositories import AuthRepoBundle, build_auth_repos

from .secrets_manager import SecretsManager, get_secrets_manager


async def get_auth_repos(session: AsyncSession = Depends(get_session)) -> AuthRepoBundle:
    return build_auth_repos(session)


async def get_token_manager(repos: AuthRepoBundle = Depends(get_auth_repos)) -> TokenManager:
    return TokenManager(repos)


async def get_auth_service(
    repos: AuthRepoBundle = Depends(get_auth_repos),
    tokens: TokenManager = Depends(get_token_manager),
) -> AuthService:
    return AuthService(repos, tokens)


TokenManagerDep = Annotated[TokenManager, Depends(get_token_manager)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SecretsManagerDep = Annotated[SecretsManager, Depends(get_secrets_manager)]
