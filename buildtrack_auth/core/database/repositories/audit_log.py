"""
Audit log repository.

Append-only writes and per-user reads of security events.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.audit_log import AuthAuditLog
from .base import AsyncBaseRepository, QueryBuilder


class AuditLogRepository(AsyncBaseRepository[AuthAuditLog]):
    """Repository for ``auth_audit_log``."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuthAuditLog)

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[AuthAuditLog]:
        """List audit events, newest first.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (user_id, action, status)

        Returns:
            List of AuthAuditLog instances
        """
        stmt = select(AuthAuditLog).order_by(AuthAuditLog.id.desc())  # type: ignore[union-attr]
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, AuthAuditLog, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, limit: Optional[int] = None) -> List[AuthAuditLog]:
        return await self.list(limit=limit, filters={"user_id": user_id})
