"""Error types for the auth package.

Every error raised by the auth service derives from :class:`AuthError` and
carries the HTTP status and public message the API renders. ``extra`` holds
additional response fields (e.g. ``requires_mfa`` or password issues).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class AuthError(Exception):
    """Base error for all auth failures surfaced to clients."""

    status_code: int = 400

    def __init__(self, message: str, status_code: Optional[int] = None, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = extra


class InvalidCredentialsError(AuthError):
    """Raised for an unknown email or a wrong password. The message never says which."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class AccountDisabledError(AuthError):
    """Raised when a deactivated account tries to log in."""

    status_code = 403

    def __init__(self) -> None:
        super().__init__("Account is disabled, please contact the administrator")


class MFARequiredError(AuthError):
    """Raised when MFA is enabled and no code accompanied the credentials."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("Two-factor authentication code required", requires_mfa=True)


class InvalidMFACodeError(AuthError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid two-factor authentication code")


class EmailNotVerifiedError(AuthError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Email address has not been verified", requires_verification=True)


class WeakPasswordError(AuthError):
    """Raised when a password fails the strength policy."""

    status_code = 400

    def __init__(self, issues: List[str], suggestions: List[str]) -> None:
        super().__init__("Password does not meet security requirements", issues=issues, suggestions=suggestions)


class EmailAlreadyRegisteredError(AuthError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Email is already registered")


class InvalidVerificationCodeError(AuthError):
    status_code = 400

    def __init__(self, message: str = "Invalid or expired verification code") -> None:
        super().__init__(message)


class InvalidTokenError(AuthError):
    """Raised when a refresh or reset token is rejected."""

    status_code = 401

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class UserNotFoundError(AuthError):
    status_code = 404

    def __init__(self) -> None:
        super().__init__("User not found")


class SessionNotFoundError(AuthError):
    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: '{session_id}'")


class MFANotConfiguredError(AuthError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Two-factor authentication has not been set up")


class MFAAlreadyEnabledError(AuthError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Two-factor authentication is already enabled")


class IncorrectPasswordError(AuthError):
    """Raised when a password re-check (change password, disable MFA) fails."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Current password is incorrect")


class PasswordHashingError(Exception):
    """Raised when bcrypt fails to hash a password."""


class DecryptionError(Exception):
    """Raised when ciphertext cannot be authenticated or decoded."""
