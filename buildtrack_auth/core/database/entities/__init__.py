"""
Database entity models organized by table.

Importing this package registers every table on ``Base.metadata``.
"""

from .audit_log import AuthAuditLog
from .auth_sessions import AuthUserSession
from .users import User
from .verification_codes import AuthVerificationCode, VerificationCodeType

__all__ = [
    "AuthAuditLog",
    "AuthUserSession",
    "AuthVerificationCode",
    "User",
    "VerificationCodeType",
]
