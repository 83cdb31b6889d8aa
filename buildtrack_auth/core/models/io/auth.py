"""
Request and response schemas for the auth endpoints and service.

Emails are normalised to lower case on the way in; the user repository relies
on that for case-insensitive lookups.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from buildtrack_auth.core.models.domain import PasswordStrength, TokenPair, UserRole


def _normalise_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return value


# =====================================================================
# Requests
# =====================================================================


class LoginRequest(BaseModel):
    """Credentials plus optional second factor and client metadata."""

    email: str
    password: str = Field(min_length=1)
    totp_code: Optional[str] = Field(default=None, description="TOTP or backup code when MFA is enabled")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: str = "web"

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=32)
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)


class RefreshRequest(BaseModel):
    refresh_token: str


class VerifyEmailRequest(BaseModel):
    user_id: str
    code: str = Field(min_length=1, max_length=16)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class PasswordStrengthRequest(BaseModel):
    password: str


class MFAEnableRequest(BaseModel):
    code: str


class MFADisableRequest(BaseModel):
    password: str


# =====================================================================
# Results and responses
# =====================================================================


class UserPublic(BaseModel):
    """Account fields safe to return to clients."""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str = ""
    phone: Optional[str] = None
    role: str
    email_verified: bool
    mfa_enabled: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, user) -> "UserPublic":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            phone=user.phone,
            role=user.role,
            email_verified=user.email_verified_at is not None,
            mfa_enabled=user.mfa_enabled,
            last_login=user.last_login,
            created_at=user.created_at,
        )


class LoginResult(BaseModel):
    user: UserPublic
    tokens: TokenPair


class RegisterResult(BaseModel):
    """Outcome of registration.

    ``verification_code`` is set only when email verification is pending. It is
    meant for the mail delivery collaborator and is never sent to the client.
    """

    user: UserPublic
    requires_verification: bool
    verification_code: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class LoginResponse(MessageResponse):
    user: UserPublic
    tokens: TokenPair


class RegisterResponse(MessageResponse):
    user: UserPublic
    requires_verification: bool


class TokenResponse(MessageResponse):
    tokens: TokenPair


class UserResponse(MessageResponse):
    user: UserPublic


class PasswordStrengthResponse(MessageResponse):
    strength: PasswordStrength


class MFASetupResponse(MessageResponse):
    secret: str
    qr_code_url: str
    backup_codes: List[str]


class RevokedCountResponse(MessageResponse):
    revoked_sessions: int
