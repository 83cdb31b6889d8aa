"""
User entity model.

This module contains the account table used by the auth service: identity,
bcrypt password hash, role, verification state and MFA material.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, new_uuid, utc_now


class User(Base, table=True):
    """Application account.

    ``totp_secret`` and ``backup_codes`` are stored encrypted (AES-GCM JSON
    envelopes produced by ``crypto_utils``), never in clear text.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=36)
    email: str = Field(index=True, unique=True, max_length=255)
    password_hash: str = Field(max_length=255)

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=32)
    avatar_url: Optional[str] = Field(default=None)
    role: str = Field(default="user", max_length=32)

    is_active: bool = Field(default=True)
    email_verified_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    last_login: Optional[datetime] = Field(sa_type=DateTime, default=None)

    # MFA
    totp_secret: Optional[str] = Field(default=None)
    mfa_enabled: bool = Field(default=False)
    mfa_enabled_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    backup_codes: Optional[str] = Field(default=None)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, role={self.role})"
