"""
Auth session entity model.

One row per issued token pair. The row is the server-side half of a JWT
session: tokens are only honoured while their row exists, is unrevoked and
holds the token's hash.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, utc_now


class AuthUserSession(Base, table=True):
    """Server-side record of an issued access/refresh token pair.

    ``session_id`` is the ``sid`` claim shared by both tokens. Token columns hold
    SHA-256 hex digests; raw tokens are never persisted.

    Table: auth_user_sessions
    """

    __tablename__ = "auth_user_sessions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: str = Field(index=True, unique=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)

    access_token_hash: str = Field(index=True, max_length=64)
    refresh_token_hash: str = Field(index=True, max_length=64)

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None)
    device_type: str = Field(default="web", max_length=32)

    last_activity: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    access_expires_at: datetime = Field(sa_type=DateTime)
    expires_at: datetime = Field(sa_type=DateTime, index=True, description="Refresh token expiry")

    is_revoked: bool = Field(default=False, index=True)
    revoked_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    revoked_reason: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

    def __repr__(self) -> str:
        return f"AuthUserSession(session_id={self.session_id}, user_id={self.user_id}, revoked={self.is_revoked})"
