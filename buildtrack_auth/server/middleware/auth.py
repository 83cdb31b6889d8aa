"""
Authentication dependencies.

``require_auth`` resolves the bearer token of a request into an
:class:`AuthenticatedUser` (also stored on ``request.state.user``);
``require_role`` and ``require_permission`` build on it to guard routes.

Usage::

    @router.get("/secrets/status", dependencies=[Depends(require_role(UserRole.ADMIN))])
"""

from typing import Annotated, Callable, Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from buildtrack_auth.auth import AuthError, TokenManager
from buildtrack_auth.core.logging_config import get_logger
from buildtrack_auth.core.models.domain import AuthenticatedUser, UserRole
from buildtrack_auth.server.services.deps import get_token_manager

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def require_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenManager = Depends(get_token_manager),
) -> AuthenticatedUser:
    """Authenticate the request from its ``Authorization: Bearer`` header.

    Raises:
        AuthError: 401 when the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Authentication token not found", status_code=401)

    user = await tokens.verify_access_token(credentials.credentials)
    if user is None:
        logger.debug(f"Rejected access token on {request.method} {request.url.path}")
        raise AuthError("Invalid authentication token", status_code=401)

    request.state.user = user
    return user


CurrentUser = Annotated[AuthenticatedUser, Depends(require_auth)]


def require_role(*roles: Union[UserRole, str]) -> Callable:
    """Build a dependency admitting only users holding one of ``roles``."""
    allowed = {r.value if isinstance(r, UserRole) else r for r in roles}

    async def _check_role(user: CurrentUser) -> AuthenticatedUser:
        if user.role not in allowed:
            logger.info(f"User {user.user_id} with role {user.role} denied, requires one of {sorted(allowed)}")
            raise AuthError("Insufficient permissions", status_code=403, required_roles=sorted(allowed))
        return user

    return _check_role


def require_permission(resource: str, action: str) -> Callable:
    """Build a dependency checking ``action`` on ``resource``.

    Admins always pass. Fine-grained permissions are not modelled, so every
    other authenticated user passes as well.
    """

    async def _check_permission(user: CurrentUser) -> AuthenticatedUser:
        if user.role != UserRole.ADMIN.value:
            logger.debug(f"Permission {action} on {resource} granted to user {user.user_id} (role {user.role})")
        return user

    return _check_permission
