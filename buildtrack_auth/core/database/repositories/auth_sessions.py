"""
Auth session repository.

Data access for server-side token sessions, including the bulk revocation and
expiry purge statements used by the token lifecycle.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.auth_sessions import AuthUserSession
from .base import AsyncBaseRepository, QueryBuilder


class AuthSessionRepository(AsyncBaseRepository[AuthUserSession]):
    """Repository for ``auth_user_sessions``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuthUserSession)

    async def get_by_session_id(self, session_id: str) -> Optional[AuthUserSession]:
        stmt = select(AuthUserSession).where(AuthUserSession.session_id == session_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[AuthUserSession]:
        """List sessions with optional pagination and filtering.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (user_id, is_revoked, device_type)

        Returns:
            List of sessions, most recently active first
        """
        stmt = select(AuthUserSession).order_by(AuthUserSession.last_activity.desc())  # type: ignore[attr-defined]
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, AuthUserSession, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_for_user(self, user_id: str) -> List[AuthUserSession]:
        """Unrevoked sessions of a user ordered by last activity (oldest first)."""
        stmt = (
            select(AuthUserSession)
            .where(AuthUserSession.user_id == user_id)
            .where(AuthUserSession.is_revoked == False)  # noqa: E712
            .order_by(AuthUserSession.last_activity.asc())  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def touch(self, session_id: str) -> None:
        """Record activity on a session."""
        stmt = (
            update(AuthUserSession)
            .where(AuthUserSession.session_id == session_id)
            .values(last_activity=utc_now())
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def revoke_matching(self, token_hash_or_session_id: str, reason: str) -> int:
        """Revoke unrevoked sessions matched by session id, access hash or refresh hash.

        Args:
            token_hash_or_session_id: Session id, or SHA-256 hex of either token
            reason: Stored in ``revoked_reason``

        Returns:
            Number of rows revoked
        """
        stmt = (
            update(AuthUserSession)
            .where(
                or_(
                    AuthUserSession.session_id == token_hash_or_session_id,
                    AuthUserSession.access_token_hash == token_hash_or_session_id,
                    AuthUserSession.refresh_token_hash == token_hash_or_session_id,
                )
            )
            .where(AuthUserSession.is_revoked == False)  # noqa: E712
            .values(is_revoked=True, revoked_at=utc_now(), revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def revoke_all_for_user(self, user_id: str, reason: str, except_session_id: Optional[str] = None) -> int:
        """Revoke every unrevoked session of a user, optionally sparing one.

        Returns:
            Number of rows revoked
        """
        stmt = (
            update(AuthUserSession)
            .where(AuthUserSession.user_id == user_id)
            .where(AuthUserSession.is_revoked == False)  # noqa: E712
        )
        if except_session_id:
            stmt = stmt.where(AuthUserSession.session_id != except_session_id)
        stmt = stmt.values(is_revoked=True, revoked_at=utc_now(), revoked_reason=reason)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Delete sessions whose refresh token has expired.

        Returns:
            Number of rows deleted
        """
        stmt = delete(AuthUserSession).where(AuthUserSession.expires_at < (now or utc_now()))
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
