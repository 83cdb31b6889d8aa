"""
API endpoints for account authentication.

Provides registration, login with optional two-factor authentication, token
refresh and logout, email verification, password change and reset, and TOTP
enrolment.

Errors raised by the auth service are rendered by the ``AuthError`` handler as
``{"success": false, "message": ...}`` with the matching status code.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from buildtrack_auth.auth.crypto_utils import validate_password_strength
from buildtrack_auth.core.logging_config import get_logger
from buildtrack_auth.core.models.domain import RevocationReason, UserRole
from buildtrack_auth.core.models.io import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    MFADisableRequest,
    MFAEnableRequest,
    MFASetupResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordStrengthRequest,
    PasswordStrengthResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    RevokedCountResponse,
    TokenResponse,
    UserResponse,
    VerifyEmailRequest,
)
from buildtrack_auth.server.middleware.auth import CurrentUser
from buildtrack_auth.server.services.deps import AuthServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# =====================================================================
# Registration and login
# =====================================================================


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account. Self-registered accounts always get the `user` role.",
    responses={
        400: {"description": "Password does not meet the policy"},
        409: {"description": "Email already registered"},
    },
)
async def register(payload: RegisterRequest, service: AuthServiceDep) -> RegisterResponse:
    result = await service.register_user(payload.model_copy(update={"role": UserRole.USER}))
    if result.verification_code:
        # Delivery is handled by the mail service; the code never goes back to the client.
        logger.info(f"Email verification code issued for user {result.user.id}")
    message = "Account created, please verify your email" if result.requires_verification else "Account created"
    return RegisterResponse(message=message, user=result.user, requires_verification=result.requires_verification)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Exchange credentials (and a TOTP or backup code when MFA is enabled) for a token pair.",
    responses={
        401: {"description": "Invalid credentials, or MFA code required/invalid"},
        403: {"description": "Account disabled or email not verified"},
    },
)
async def login(payload: LoginRequest, request: Request, service: AuthServiceDep) -> LoginResponse:
    login_request = payload.model_copy(
        update={"ip_address": _client_ip(request), "user_agent": request.headers.get("user-agent")}
    )
    result = await service.login_user(login_request)
    return LoginResponse(message="Logged in", user=result.user, tokens=result.tokens)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh Tokens",
    description="Rotate a token pair. The presented refresh token is invalidated.",
    responses={401: {"description": "Invalid, expired, revoked or reused refresh token"}},
)
async def refresh(payload: RefreshRequest, service: AuthServiceDep) -> TokenResponse:
    tokens = await service.refresh_tokens(payload.refresh_token)
    return TokenResponse(message="Tokens refreshed", tokens=tokens)


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(user: CurrentUser, service: AuthServiceDep) -> MessageResponse:
    """Revoke the session of the presented access token."""
    await service.terminate_session(user.user_id, user.session_id, reason=RevocationReason.USER_LOGOUT.value)
    return MessageResponse(message="Logged out")


@router.post("/logout-all", response_model=RevokedCountResponse, summary="Logout From All Devices")
async def logout_all(user: CurrentUser, service: AuthServiceDep) -> RevokedCountResponse:
    """Revoke every session of the caller, including the current one."""
    revoked = await service.terminate_all_other_sessions(user.user_id, except_session_id=None)
    return RevokedCountResponse(message="Logged out from all devices", revoked_sessions=revoked)


@router.get("/me", response_model=UserResponse, summary="Current User")
async def me(user: CurrentUser, service: AuthServiceDep) -> UserResponse:
    return UserResponse(message="OK", user=await service.get_user(user.user_id))


@router.post(
    "/verify-email",
    response_model=UserResponse,
    summary="Verify Email",
    responses={400: {"description": "Invalid, expired or exhausted code"}, 404: {"description": "Unknown user"}},
)
async def verify_email(payload: VerifyEmailRequest, service: AuthServiceDep) -> UserResponse:
    user = await service.verify_email(payload.user_id, payload.code)
    return UserResponse(message="Email verified", user=user)


# =====================================================================
# Passwords
# =====================================================================


@router.post(
    "/password/change",
    response_model=RevokedCountResponse,
    summary="Change Password",
    description="Change the password. Every session except the current one is signed out.",
)
async def change_password(
    payload: ChangePasswordRequest, user: CurrentUser, service: AuthServiceDep
) -> RevokedCountResponse:
    revoked = await service.change_password(
        user.user_id, payload.current_password, payload.new_password, current_session_id=user.session_id
    )
    return RevokedCountResponse(message="Password changed", revoked_sessions=revoked)


@router.post(
    "/password/reset-request",
    response_model=MessageResponse,
    summary="Request Password Reset",
    description="Issue a reset token for the account. The response is the same whether or not the email exists.",
)
async def request_password_reset(payload: PasswordResetRequest, service: AuthServiceDep) -> MessageResponse:
    token = await service.request_password_reset(payload.email)
    if token:
        logger.info("Password reset token issued")
    return MessageResponse(message="If the account exists, password reset instructions have been sent")


@router.post(
    "/password/reset",
    response_model=MessageResponse,
    summary="Reset Password",
    description="Set a new password with a reset token. All sessions are signed out.",
    responses={401: {"description": "Invalid or expired reset token"}},
)
async def reset_password(payload: PasswordResetConfirm, service: AuthServiceDep) -> MessageResponse:
    await service.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset")


@router.post("/password/strength", response_model=PasswordStrengthResponse, summary="Check Password Strength")
async def password_strength(payload: PasswordStrengthRequest) -> PasswordStrengthResponse:
    strength = validate_password_strength(payload.password)
    message = "Password is strong" if strength.is_valid else "Password is too weak"
    return PasswordStrengthResponse(message=message, strength=strength)


# =====================================================================
# MFA
# =====================================================================


@router.post(
    "/mfa/setup",
    response_model=MFASetupResponse,
    summary="Start MFA Setup",
    description="Generate a TOTP secret and backup codes. MFA is enabled once a code is confirmed.",
)
async def mfa_setup(user: CurrentUser, service: AuthServiceDep) -> MFASetupResponse:
    setup = await service.setup_totp(user.user_id)
    return MFASetupResponse(
        message="Scan the QR code, then confirm with a code",
        secret=setup.secret,
        qr_code_url=setup.qr_code_url,
        backup_codes=setup.backup_codes,
    )


@router.post("/mfa/enable", response_model=MessageResponse, summary="Enable MFA")
async def mfa_enable(payload: MFAEnableRequest, user: CurrentUser, service: AuthServiceDep) -> MessageResponse:
    await service.enable_totp(user.user_id, payload.code)
    return MessageResponse(message="Two-factor authentication enabled")


@router.post("/mfa/disable", response_model=MessageResponse, summary="Disable MFA")
async def mfa_disable(payload: MFADisableRequest, user: CurrentUser, service: AuthServiceDep) -> MessageResponse:
    await service.disable_totp(user.user_id, payload.password)
    return MessageResponse(message="Two-factor authentication disabled")
