"""
Middleware modules for the auth server.

- request_logging: per-request timing and logging middleware
- auth: FastAPI dependencies guarding routes with bearer tokens, roles and permissions
"""

from .auth import CurrentUser, require_auth, require_permission, require_role
from .request_logging import RequestLoggingMiddleware

__all__ = ["CurrentUser", "RequestLoggingMiddleware", "require_auth", "require_permission", "require_role"]
