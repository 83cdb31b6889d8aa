"""
Verification code repository.

Lookup of live one-time codes (unused, unexpired, attempts left) and the
state transitions applied to them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.verification_codes import AuthVerificationCode
from .base import AsyncBaseRepository, QueryBuilder


class VerificationCodeRepository(AsyncBaseRepository[AuthVerificationCode]):
    """Repository for ``auth_verification_codes``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuthVerificationCode)

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[AuthVerificationCode]:
        stmt = select(AuthVerificationCode).order_by(
            AuthVerificationCode.created_at.desc()  # type: ignore[attr-defined]
        )
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, AuthVerificationCode, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    def _live(self, code_type: str, max_attempts: int, now: Optional[datetime]):
        return (
            select(AuthVerificationCode)
            .where(AuthVerificationCode.type == code_type)
            .where(AuthVerificationCode.is_used == False)  # noqa: E712
            .where(AuthVerificationCode.expires_at >= (now or utc_now()))
            .where(AuthVerificationCode.attempts < max_attempts)
        )

    async def get_latest_live_for_user(
        self, user_id: str, code_type: str, max_attempts: int, now: Optional[datetime] = None
    ) -> Optional[AuthVerificationCode]:
        """Newest live code of the given type issued to a user."""
        stmt = (
            self._live(code_type, max_attempts, now)
            .where(AuthVerificationCode.user_id == user_id)
            .order_by(AuthVerificationCode.id.desc())  # type: ignore[union-attr]
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_live_by_hash(
        self, code_type: str, code_hash: str, max_attempts: int, now: Optional[datetime] = None
    ) -> Optional[AuthVerificationCode]:
        """Live code of the given type whose hash matches."""
        stmt = self._live(code_type, max_attempts, now).where(AuthVerificationCode.code_hash == code_hash)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def record_failed_attempt(self, code: AuthVerificationCode) -> AuthVerificationCode:
        code.attempts += 1
        return await self.update(code)

    async def mark_used(self, code: AuthVerificationCode) -> AuthVerificationCode:
        code.is_used = True
        code.used_at = utc_now()
        return await self.update(code)
