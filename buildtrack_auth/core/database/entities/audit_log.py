"""
Audit log entity model.

Append-only record of security-relevant events: logins, failed logins,
MFA changes, password changes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, utc_now


class AuthAuditLog(Base, table=True):
    """Single audit event.

    ``event_metadata`` holds JSON text.

    Table: auth_audit_log
    """

    __tablename__ = "auth_audit_log"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True, max_length=36)
    action: str = Field(index=True, max_length=64)
    resource: str = Field(default="auth", max_length=64)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None)
    status: str = Field(default="success", max_length=16)
    error_message: Optional[str] = Field(default=None)
    event_metadata: Optional[str] = Field(default=None)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)

    def __repr__(self) -> str:
        return f"AuthAuditLog(id={self.id}, action={self.action}, status={self.status})"
