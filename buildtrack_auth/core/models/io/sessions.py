"""Schemas for the session management endpoints."""

from __future__ import annotations

from typing import List, Optional

from buildtrack_auth.core.models.domain import SessionInfo

from .auth import MessageResponse


class SessionListResponse(MessageResponse):
    sessions: List[SessionInfo]
    current_session_id: Optional[str] = None
