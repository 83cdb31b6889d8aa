"""
API endpoints for managing the caller's login sessions.

Every successful login creates a session; these endpoints let a user list
their active sessions and sign out individual devices or all other devices.
"""

from fastapi import APIRouter

from buildtrack_auth.core.models.domain import RevocationReason
from buildtrack_auth.core.models.io import MessageResponse, RevokedCountResponse, SessionListResponse
from buildtrack_auth.server.middleware.auth import CurrentUser
from buildtrack_auth.server.services.deps import AuthServiceDep

router = APIRouter(tags=["sessions"])


@router.get(
    "",
    response_model=SessionListResponse,
    summary="List Sessions",
    description="List the caller's active sessions, least recently used first.",
)
async def list_sessions(user: CurrentUser, service: AuthServiceDep) -> SessionListResponse:
    sessions = await service.get_active_sessions(user.user_id)
    return SessionListResponse(
        message=f"{len(sessions)} active session(s)",
        sessions=sessions,
        current_session_id=user.session_id,
    )


@router.delete(
    "",
    response_model=RevokedCountResponse,
    summary="Terminate Other Sessions",
    description="Sign out every session of the caller except the current one.",
)
async def terminate_other_sessions(user: CurrentUser, service: AuthServiceDep) -> RevokedCountResponse:
    revoked = await service.terminate_all_other_sessions(user.user_id, except_session_id=user.session_id)
    return RevokedCountResponse(message="Other sessions terminated", revoked_sessions=revoked)


@router.delete(
    "/{session_id}",
    response_model=MessageResponse,
    summary="Terminate Session",
    description="Sign out one of the caller's sessions.",
    responses={404: {"description": "Session not found or owned by another user"}},
)
async def terminate_session(session_id: str, user: CurrentUser, service: AuthServiceDep) -> MessageResponse:
    revoked = await service.terminate_session(user.user_id, session_id, reason=RevocationReason.MANUAL.value)
    if not revoked:
        return MessageResponse(message="Session was already terminated")
    return MessageResponse(message="Session terminated")
