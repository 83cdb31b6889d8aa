"""Domain value objects produced by the crypto and token layers."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthenticatedUser(BaseModel):
    """Identity extracted from a verified token."""

    user_id: str
    email: str
    role: str
    session_id: str


class TokenPair(BaseModel):
    """Access/refresh tokens issued together for one session."""

    access_token: str
    refresh_token: str
    session_id: str
    expires_at: datetime = Field(description="Access token expiry (naive UTC)")
    refresh_expires_at: datetime = Field(description="Refresh token expiry (naive UTC)")


class SessionInfo(BaseModel):
    """Public view of an active session."""

    model_config = ConfigDict(from_attributes=True)

    session_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: Optional[str] = None
    issued_at: datetime
    last_used_at: datetime
    expires_at: datetime


class PasswordStrength(BaseModel):
    """Result of password policy evaluation."""

    is_valid: bool
    score: int
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class TOTPSetup(BaseModel):
    """Fresh TOTP secret with its provisioning URI and backup codes."""

    secret: str
    qr_code_url: str
    backup_codes: List[str]


class EncryptedData(BaseModel):
    """AES-GCM ciphertext and nonce, both hex encoded."""

    encrypted: str
    iv: str


class IssuedCode(BaseModel):
    """One-time secret to hand to the user, with the hash to persist."""

    code: str
    hashed_code: str
    expires_at: datetime
