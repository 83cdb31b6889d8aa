"""
Database repository layer using SQLModel.

Modules:
- base: AsyncBaseRepository interface and QueryBuilder utilities
- users: Account repository operations
- auth_sessions: Token session repository operations (revocation, purge)
- audit_log: Audit event repository operations
- verification_codes: One-time code repository operations
- bundle: AuthRepoBundle for dependency injection
"""

from .audit_log import AuditLogRepository
from .auth_sessions import AuthSessionRepository
from .bundle import AuthRepoBundle, build_auth_repos
from .users import UserRepository
from .verification_codes import VerificationCodeRepository

__all__ = [
    "AuditLogRepository",
    "AuthRepoBundle",
    "AuthSessionRepository",
    "UserRepository",
    "VerificationCodeRepository",
    "build_auth_repos",
]
