"""
Account authentication service.

Implements login (with optional TOTP second factor), registration, email
verification, MFA enrolment, password change and reset, and session
management on top of the repositories and the :class:`TokenManager`.

Failures surface as :class:`~buildtrack_auth.auth.errors.AuthError` subclasses
which the HTTP layer renders directly. Security-relevant outcomes are written
to the audit log through :meth:`AuthService.log_audit_event`, which never
raises.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from buildtrack_auth.core.database.base import utc_now
from buildtrack_auth.core.database.entities import (
    AuthAuditLog,
    AuthVerificationCode,
    User,
    VerificationCodeType,
)
from buildtrack_auth.core.database.repositories import AuthRepoBundle
from buildtrack_auth.core.logging_config import get_logger
from buildtrack_auth.core.models.domain import (
    AuditStatus,
    EncryptedData,
    RevocationReason,
    SessionInfo,
    TokenPair,
    TOTPSetup,
)
from buildtrack_auth.core.models.io import (
    LoginRequest,
    LoginResult,
    RegisterRequest,
    RegisterResult,
    UserPublic,
)
from buildtrack_auth.core.monitoring import log_auth_event
from buildtrack_auth.server.core.config import get_settings

from .crypto_utils import (
    decrypt_backup_codes,
    decrypt_sensitive_data,
    encrypt_backup_codes,
    encrypt_sensitive_data,
    generate_password_reset_token,
    generate_totp_secret,
    generate_verification_code,
    hash_one_time_secret,
    hash_password,
    validate_password_strength,
    verify_password,
    verify_password_reset_token,
    verify_totp_code,
    verify_verification_code,
)
from .errors import (
    AccountDisabledError,
    DecryptionError,
    EmailAlreadyRegisteredError,
    EmailNotVerifiedError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidMFACodeError,
    InvalidTokenError,
    InvalidVerificationCodeError,
    MFAAlreadyEnabledError,
    MFANotConfiguredError,
    MFARequiredError,
    SessionNotFoundError,
    UserNotFoundError,
    WeakPasswordError,
)
from .jwt_utils import TokenManager

logger = get_logger(__name__)


class AuthService:
    """Account-level auth operations bound to one unit of work."""

    def __init__(self, repos: AuthRepoBundle, tokens: Optional[TokenManager] = None) -> None:
        self.repos = repos
        self.tokens = tokens or TokenManager(repos)

    # =================================================================
    # Audit
    # =================================================================

    async def log_audit_event(
        self,
        action: str,
        status: AuditStatus | str = AuditStatus.SUCCESS,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        resource: str = "auth",
    ) -> None:
        """Persist an audit event. Failures are logged and swallowed."""
        status_value = status.value if isinstance(status, AuditStatus) else status
        log_auth_event(action, status_value, user_id)
        try:
            await self.repos.audit_log.create(
                AuthAuditLog(
                    user_id=user_id,
                    action=action,
                    resource=resource,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    status=status_value,
                    error_message=error_message,
                    event_metadata=json.dumps(metadata, default=str) if metadata else None,
                )
            )
        except Exception as e:
            logger.error(f"Failed to write audit event action={action}: {e}", exc_info=True)
            await self.repos.audit_log.session.rollback()

    # =================================================================
    # Helpers
    # =================================================================

    async def _get_user(self, user_id: str) -> User:
        user = await self.repos.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    @staticmethod
    def _check_strength(password: str) -> None:
        strength = validate_password_strength(password)
        if not strength.is_valid:
            raise WeakPasswordError(strength.issues, strength.suggestions)

    @staticmethod
    def _decrypt_totp_secret(user: User) -> Optional[str]:
        if not user.totp_secret:
            return None
        try:
            envelope = EncryptedData.model_validate_json(user.totp_secret)
            return decrypt_sensitive_data(envelope.encrypted, envelope.iv)
        except (DecryptionError, ValueError) as e:
            logger.error(f"Stored TOTP secret for user {user.id} is unreadable: {e}")
            return None

    async def _check_second_factor(self, user: User, code: str) -> bool:
        """Accept a TOTP code, or consume a matching unused backup code."""
        secret = self._decrypt_totp_secret(user)
        if secret and verify_totp_code(secret, code):
            return True

        if not user.backup_codes:
            return False
        candidate = code.strip().upper()
        codes = decrypt_backup_codes(user.backup_codes)
        if candidate not in codes:
            return False
        codes.remove(candidate)
        user.backup_codes = encrypt_backup_codes(codes)
        await self.repos.users.update(user)
        await self.log_audit_event(
            "mfa_backup_code_used", user_id=user.id, metadata={"remaining_backup_codes": len(codes)}
        )
        return True

    # =================================================================
    # Login and registration
    # =================================================================

    async def login_user(self, request: LoginRequest) -> LoginResult:
        """Authenticate credentials and issue a token pair.

        Args:
            request: Credentials, optional second factor and client metadata

        Returns:
            LoginResult with the public user view and the issued tokens

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            AccountDisabledError: The account is inactive
            EmailNotVerifiedError: The email address is not verified yet
            MFARequiredError: MFA is enabled and no code was supplied
            InvalidMFACodeError: The TOTP/backup code is wrong
        """
        audit = {"ip_address": request.ip_address, "user_agent": request.user_agent}

        user = await self.repos.users.get_by_email(request.email)
        if user is None:
            await self.log_audit_event(
                "login_failed",
                AuditStatus.FAILURE,
                error_message="Unknown email",
                metadata={"email": request.email},
                **audit,
            )
            raise InvalidCredentialsError()

        if not user.is_active:
            await self.log_audit_event(
                "login_failed", AuditStatus.BLOCKED, user_id=user.id, error_message="Account disabled", **audit
            )
            raise AccountDisabledError()

        if not verify_password(request.password, user.password_hash):
            await self.log_audit_event(
                "login_failed", AuditStatus.FAILURE, user_id=user.id, error_message="Wrong password", **audit
            )
            raise InvalidCredentialsError()

        if user.email_verified_at is None:
            raise EmailNotVerifiedError()

        if user.mfa_enabled:
            if not request.totp_code:
                raise MFARequiredError()
            if not await self._check_second_factor(user, request.totp_code):
                await self.log_audit_event(
                    "mfa_failed", AuditStatus.FAILURE, user_id=user.id, error_message="Invalid MFA code", **audit
                )
                raise InvalidMFACodeError()

        tokens = await self.tokens.generate_token_pair(
            user.id,
            user.email,
            user.role,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
            device_type=request.device_type,
        )
        user.last_login = utc_now()
        user = await self.repos.users.update(user)

        await self.log_audit_event(
            "login_success", user_id=user.id, metadata={"session_id": tokens.session_id}, **audit
        )
        logger.info(f"User {user.id} logged in (session {tokens.session_id})")
        return LoginResult(user=UserPublic.from_entity(user), tokens=tokens)

    async def register_user(self, request: RegisterRequest) -> RegisterResult:
        """Create an account.

        When ``AUTO_VERIFY_EMAIL`` is off, an email verification code is issued
        and returned for delivery; the account cannot log in until verified.

        Raises:
            WeakPasswordError: The password fails the strength policy
            EmailAlreadyRegisteredError: The email is taken
        """
        self._check_strength(request.password)

        if await self.repos.users.get_by_email(request.email) is not None:
            raise EmailAlreadyRegisteredError()

        first_name, _, last_name = request.name.strip().partition(" ")
        user = User(
            email=request.email,
            password_hash=hash_password(request.password),
            first_name=first_name or None,
            last_name=last_name.strip() or None,
            phone=request.phone,
            role=request.role.value,
        )
        auto_verify = get_settings().auto_verify_email
        if auto_verify:
            user.email_verified_at = utc_now()
        user = await self.repos.users.create(user)

        code: Optional[str] = None
        if not auto_verify:
            code = await self._issue_verification_code(user.id)

        await self.log_audit_event("user_registered", user_id=user.id, metadata={"role": user.role})
        logger.info(f"Registered user {user.id} (verification pending: {not auto_verify})")
        return RegisterResult(
            user=UserPublic.from_entity(user), requires_verification=not auto_verify, verification_code=code
        )

    async def _issue_verification_code(self, user_id: str) -> str:
        issued = generate_verification_code()
        await self.repos.verification_codes.create(
            AuthVerificationCode(
                user_id=user_id,
                type=VerificationCodeType.EMAIL_VERIFICATION.value,
                code_hash=issued.hashed_code,
                expires_at=issued.expires_at,
            )
        )
        return issued.code

    async def verify_email(self, user_id: str, code: str) -> UserPublic:
        """Check an email verification code and mark the account verified.

        Raises:
            UserNotFoundError: Unknown user
            InvalidVerificationCodeError: No live code, or a wrong code
        """
        user = await self._get_user(user_id)
        if user.email_verified_at is not None:
            return UserPublic.from_entity(user)

        max_attempts = get_settings().crypto.max_verification_attempts
        record = await self.repos.verification_codes.get_latest_live_for_user(
            user_id, VerificationCodeType.EMAIL_VERIFICATION.value, max_attempts
        )
        if record is None:
            raise InvalidVerificationCodeError("No valid verification code, please request a new one")

        if not verify_verification_code(code, record.code_hash):
            await self.repos.verification_codes.record_failed_attempt(record)
            await self.log_audit_event("email_verification_failed", AuditStatus.FAILURE, user_id=user_id)
            raise InvalidVerificationCodeError()

        await self.repos.verification_codes.mark_used(record)
        user.email_verified_at = utc_now()
        user = await self.repos.users.update(user)
        await self.log_audit_event("email_verified", user_id=user_id)
        return UserPublic.from_entity(user)

    async def get_user(self, user_id: str) -> UserPublic:
        return UserPublic.from_entity(await self._get_user(user_id))

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Rotate a token pair, raising instead of returning ``None``."""
        tokens = await self.tokens.refresh_access_token(refresh_token)
        if tokens is None:
            raise InvalidTokenError("Invalid or expired refresh token")
        return tokens

    # =================================================================
    # MFA
    # =================================================================

    async def setup_totp(self, user_id: str) -> TOTPSetup:
        """Generate and store (encrypted) a TOTP secret and backup codes.

        MFA stays disabled until :meth:`enable_totp` confirms a code.
        """
        user = await self._get_user(user_id)
        if user.mfa_enabled:
            raise MFAAlreadyEnabledError()

        setup = generate_totp_secret(user.email)
        user.totp_secret = encrypt_sensitive_data(setup.secret).model_dump_json()
        user.backup_codes = encrypt_backup_codes(setup.backup_codes)
        await self.repos.users.update(user)
        await self.log_audit_event("mfa_setup_started", user_id=user_id)
        return setup

    async def enable_totp(self, user_id: str, code: str) -> None:
        """Confirm the pending TOTP secret with a current code and turn MFA on."""
        user = await self._get_user(user_id)
        if user.mfa_enabled:
            raise MFAAlreadyEnabledError()
        secret = self._decrypt_totp_secret(user)
        if secret is None:
            raise MFANotConfiguredError()

        if not verify_totp_code(secret, code):
            await self.log_audit_event("mfa_enable_failed", AuditStatus.FAILURE, user_id=user_id)
            raise InvalidMFACodeError()

        user.mfa_enabled = True
        user.mfa_enabled_at = utc_now()
        await self.repos.users.update(user)
        await self.log_audit_event("mfa_enabled", user_id=user_id)

    async def disable_totp(self, user_id: str, password: str) -> None:
        """Turn MFA off after re-checking the password; clears all MFA material."""
        user = await self._get_user(user_id)
        if not user.mfa_enabled and not user.totp_secret:
            raise MFANotConfiguredError()
        if not verify_password(password, user.password_hash):
            await self.log_audit_event(
                "mfa_disable_failed", AuditStatus.FAILURE, user_id=user_id, error_message="Wrong password"
            )
            raise IncorrectPasswordError()

        user.mfa_enabled = False
        user.mfa_enabled_at = None
        user.totp_secret = None
        user.backup_codes = None
        await self.repos.users.update(user)
        await self.log_audit_event("mfa_disabled", user_id=user_id)

    # =================================================================
    # Passwords
    # =================================================================

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
        current_session_id: Optional[str] = None,
    ) -> int:
        """Replace the password and revoke every other session.

        Returns:
            Number of sessions revoked
        """
        user = await self._get_user(user_id)
        if not verify_password(current_password, user.password_hash):
            await self.log_audit_event(
                "password_change_failed", AuditStatus.FAILURE, user_id=user_id, error_message="Wrong password"
            )
            raise IncorrectPasswordError()
        self._check_strength(new_password)

        user.password_hash = hash_password(new_password)
        await self.repos.users.update(user)
        revoked = await self.tokens.revoke_all_user_sessions(
            user_id, except_session_id=current_session_id, reason=RevocationReason.PASSWORD_CHANGED.value
        )
        await self.log_audit_event("password_changed", user_id=user_id, metadata={"revoked_sessions": revoked})
        return revoked

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token for an active account.

        Unknown or inactive accounts are ignored silently so the endpoint does
        not reveal which emails exist.

        Returns:
            The raw reset token for delivery, or None
        """
        user = await self.repos.users.get_by_email(email)
        if user is None or not user.is_active:
            logger.debug("Password reset requested for unknown or inactive account")
            return None

        issued = generate_password_reset_token()
        await self.repos.verification_codes.create(
            AuthVerificationCode(
                user_id=user.id,
                type=VerificationCodeType.PASSWORD_RESET.value,
                code_hash=issued.hashed_code,
                expires_at=issued.expires_at,
            )
        )
        await self.log_audit_event("password_reset_requested", user_id=user.id)
        return issued.code

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token; revokes all sessions."""
        max_attempts = get_settings().crypto.max_verification_attempts
        record = await self.repos.verification_codes.get_live_by_hash(
            VerificationCodeType.PASSWORD_RESET.value, hash_one_time_secret(token), max_attempts
        )
        if record is None or not verify_password_reset_token(token, record.code_hash):
            raise InvalidTokenError("Invalid or expired password reset token")
        self._check_strength(new_password)

        user = await self._get_user(record.user_id)
        if not user.is_active:
            raise AccountDisabledError()
        await self.repos.verification_codes.mark_used(record)
        user.password_hash = hash_password(new_password)
        await self.repos.users.update(user)
        revoked = await self.tokens.revoke_all_user_sessions(user.id, reason=RevocationReason.PASSWORD_RESET.value)
        await self.log_audit_event("password_reset", user_id=user.id, metadata={"revoked_sessions": revoked})

    # =================================================================
    # Sessions
    # =================================================================

    async def get_active_sessions(self, user_id: str) -> List[SessionInfo]:
        return await self.tokens.get_user_active_sessions(user_id)

    async def terminate_session(
        self, user_id: str, session_id: str, reason: str = RevocationReason.USER_LOGOUT.value
    ) -> bool:
        """Revoke one of the user's own sessions.

        Raises:
            SessionNotFoundError: The session does not exist or belongs to someone else
        """
        row = await self.repos.sessions.get_by_session_id(session_id)
        if row is None or row.user_id != user_id:
            raise SessionNotFoundError(session_id)
        revoked = await self.tokens.revoke_token(session_id, reason=reason)
        if revoked:
            await self.log_audit_event(
                "session_terminated", user_id=user_id, metadata={"session_id": session_id, "reason": reason}
            )
        return revoked

    async def terminate_all_other_sessions(self, user_id: str, except_session_id: Optional[str]) -> int:
        revoked = await self.tokens.revoke_all_user_sessions(user_id, except_session_id=except_session_id)
        await self.log_audit_event("sessions_terminated", user_id=user_id, metadata={"revoked_sessions": revoked})
        return revoked
