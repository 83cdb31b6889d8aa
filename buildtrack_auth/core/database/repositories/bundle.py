"""
Repository bundle for dependency injection.

Groups every auth repository around a single ``AsyncSession`` so a request
works inside one unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .audit_log import AuditLogRepository
from .auth_sessions import AuthSessionRepository
from .users import UserRepository
from .verification_codes import VerificationCodeRepository


@dataclass(frozen=True)
class AuthRepoBundle:
    """Convenience bundle of all auth repositories."""

    users: UserRepository
    sessions: AuthSessionRepository
    audit_log: AuditLogRepository
    verification_codes: VerificationCodeRepository


def build_auth_repos(session: AsyncSession) -> AuthRepoBundle:
    """Build an ``AuthRepoBundle`` sharing one session.

    Args:
        session: Async session used by every repository

    Returns:
        Bundle containing all repository instances
    """
    return AuthRepoBundle(
        users=UserRepository(session),
        sessions=AuthSessionRepository(session),
        audit_log=AuditLogRepository(session),
        verification_codes=VerificationCodeRepository(session),
    )
