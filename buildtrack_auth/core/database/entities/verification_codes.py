"""
Verification code entity model.

Hashed one-time codes for email verification and password reset.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, utc_now


class VerificationCodeType(str, Enum):
    """Purpose of a one-time code."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class AuthVerificationCode(Base, table=True):
    """One-time code awaiting use.

    Table: auth_verification_codes
    """

    __tablename__ = "auth_verification_codes"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    type: str = Field(index=True, max_length=32)
    code_hash: str = Field(index=True, max_length=64)
    attempts: int = Field(default=0)
    is_used: bool = Field(default=False)
    used_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    expires_at: datetime = Field(sa_type=DateTime)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

    def __repr__(self) -> str:
        return f"AuthVerificationCode(id={self.id}, type={self.type}, user_id={self.user_id})"
