"""Domain models and enums for the auth subsystem.

These types are shared between the crypto helpers, the token manager, the
auth service and the HTTP layer.
"""

from .enums import AuditStatus, RevocationReason, TokenType, UserRole
from .models import (
    AuthenticatedUser,
    EncryptedData,
    IssuedCode,
    PasswordStrength,
    SessionInfo,
    TokenPair,
    TOTPSetup,
)

__all__ = [
    "AuditStatus",
    "AuthenticatedUser",
    "EncryptedData",
    "IssuedCode",
    "PasswordStrength",
    "RevocationReason",
    "SessionInfo",
    "TOTPSetup",
    "TokenPair",
    "TokenType",
    "UserRole",
]
