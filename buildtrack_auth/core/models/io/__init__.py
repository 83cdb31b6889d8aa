"""Request/response schemas exchanged with the HTTP layer."""

from .auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    LoginResult,
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
    RegisterResult,
    RevokedCountResponse,
    TokenResponse,
    UserPublic,
    UserResponse,
    VerifyEmailRequest,
)
from .secrets import RequiredSecret, SecretsCheck, SecretsReport, SecretStatus, SecretsStatusResponse
from .sessions import SessionListResponse

__all__ = [
    "ChangePasswordRequest",
    "LoginRequest",
    "LoginResponse",
    "LoginResult",
    "MFADisableRequest",
    "MFAEnableRequest",
    "MFASetupResponse",
    "MessageResponse",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PasswordStrengthRequest",
    "PasswordStrengthResponse",
    "RefreshRequest",
    "RegisterRequest",
    "RegisterResponse",
    "RegisterResult",
    "RequiredSecret",
    "RevokedCountResponse",
    "SecretStatus",
    "SecretsCheck",
    "SecretsReport",
    "SecretsStatusResponse",
    "SessionListResponse",
    "TokenResponse",
    "UserPublic",
    "UserResponse",
    "VerifyEmailRequest",
]
