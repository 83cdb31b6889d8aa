"""Enumerations shared by the auth domain."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Account roles. ``admin`` bypasses permission checks."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class TokenType(str, Enum):
    """Value of the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


class AuditStatus(str, Enum):
    """Outcome recorded on an audit event."""

    SUCCESS = "success"
    FAILURE = "failure"
    BLOCKED = "blocked"
    ERROR = "error"


class RevocationReason(str, Enum):
    """Values written to ``auth_user_sessions.revoked_reason``."""

    MANUAL = "manual_revoke"
    USER_LOGOUT = "user_logout"
    LOGOUT_ALL = "logout_all_devices"
    ROTATED = "rotated"
    REFRESH_REUSE = "refresh_token_reuse"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_RESET = "password_reset"
