"""Schemas describing the state of required signing secrets."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .auth import MessageResponse


class RequiredSecret(BaseModel):
    """A secret the service needs in its environment."""

    name: str
    description: str = ""
    default_value: Optional[str] = Field(default=None, description="Used instead of a generated value")


class SecretsCheck(BaseModel):
    missing: List[str] = Field(default_factory=list)
    existing: List[str] = Field(default_factory=list)


class SecretsReport(BaseModel):
    """Outcome of provisioning missing secrets into ``.env``."""

    added: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    existing: List[str] = Field(default_factory=list)


class SecretStatus(BaseModel):
    name: str
    exists: bool
    description: str = ""


class SecretsStatusResponse(MessageResponse):
    secrets: List[SecretStatus]
