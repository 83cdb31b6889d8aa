"""
JWT access/refresh token lifecycle.

A login issues a token pair that shares one session id (the ``sid`` claim). The
pair is backed by an ``auth_user_sessions`` row holding SHA-256 hashes of both
tokens, so a token is honoured only while its signature, expiry and issuer are
valid AND its session row exists, is unrevoked and still holds its hash.

Refreshing rotates the pair: the old session is revoked with reason
``rotated`` and a new session is created. Presenting a refresh token from a
rotated session again is treated as token theft and revokes every session of
the user.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

import jwt

from buildtrack_auth.core.database.base import utc_now
from buildtrack_auth.core.database.entities import AuthUserSession
from buildtrack_auth.core.database.repositories import AuthRepoBundle
from buildtrack_auth.core.logging_config import get_logger
from buildtrack_auth.core.models.domain import (
    AuthenticatedUser,
    RevocationReason,
    SessionInfo,
    TokenPair,
    TokenType,
)
from buildtrack_auth.server.core.config import get_settings

logger = get_logger(__name__)

_REQUIRED_CLAIMS = ("userId", "email", "role", "sid", "type")


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store and match tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a token WITHOUT verifying it. For diagnostics only."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None


def _looks_like_jwt(value: str) -> bool:
    return value.count(".") == 2


class TokenManager:
    """Issues, verifies, rotates and revokes token pairs.

    All state lives in the database, reached through ``repos``; the manager
    itself is cheap to build per request.
    """

    def __init__(self, repos: AuthRepoBundle) -> None:
        self.repos = repos

    # -----------------------------------------------------------------
    # Signing
    # -----------------------------------------------------------------

    @staticmethod
    def _secret_for(token_type: TokenType) -> str:
        cfg = get_settings().jwt
        return cfg.access_secret if token_type == TokenType.ACCESS else cfg.refresh_secret

    def _sign(self, claims: Dict[str, Any], token_type: TokenType, expires_at) -> str:
        cfg = get_settings().jwt
        payload = {
            **claims,
            "type": token_type.value,
            "jti": uuid.uuid4().hex,
            "iat": utc_now(),
            "exp": expires_at,
            "iss": cfg.issuer,
        }
        return jwt.encode(payload, self._secret_for(token_type), algorithm=cfg.algorithm)

    def _decode(self, token: str, token_type: TokenType) -> Optional[Dict[str, Any]]:
        cfg = get_settings().jwt
        try:
            claims = jwt.decode(
                token,
                self._secret_for(token_type),
                algorithms=[cfg.algorithm],
                issuer=cfg.issuer,
                options={"require": ["exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug(f"Rejected expired {token_type.value} token")
            return None
        except jwt.PyJWTError as e:
            logger.debug(f"Rejected {token_type.value} token: {e}")
            return None

        if claims.get("type") != token_type.value:
            logger.debug(f"Rejected token with type={claims.get('type')!r}, expected {token_type.value}")
            return None
        if any(not claims.get(name) for name in _REQUIRED_CLAIMS):
            logger.debug("Rejected token with missing identity claims")
            return None
        return claims

    # -----------------------------------------------------------------
    # Issuance and verification
    # -----------------------------------------------------------------

    async def generate_token_pair(
        self,
        user_id: str,
        email: str,
        role: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        device_type: str = "web",
    ) -> TokenPair:
        """Issue an access/refresh pair and persist its session row.

        Args:
            user_id: Subject of the tokens
            email: Copied into the ``email`` claim
            role: Copied into the ``role`` claim
            ip_address: Client address recorded on the session
            user_agent: Client user agent recorded on the session
            device_type: Client kind (web, mobile, ...)

        Returns:
            TokenPair with both tokens, the session id and both expiries
        """
        cfg = get_settings().jwt
        now = utc_now()
        access_expires_at = now + timedelta(minutes=cfg.access_token_ttl_minutes)
        refresh_expires_at = now + timedelta(days=cfg.refresh_token_ttl_days)
        session_id = str(uuid.uuid4())

        claims = {"userId": user_id, "email": email, "role": role, "sid": session_id}
        access_token = self._sign(claims, TokenType.ACCESS, access_expires_at)
        refresh_token = self._sign(claims, TokenType.REFRESH, refresh_expires_at)

        await self.repos.sessions.create(
            AuthUserSession(
                session_id=session_id,
                user_id=user_id,
                access_token_hash=hash_token(access_token),
                refresh_token_hash=hash_token(refresh_token),
                ip_address=ip_address,
                user_agent=user_agent,
                device_type=device_type or "web",
                last_activity=now,
                access_expires_at=access_expires_at,
                expires_at=refresh_expires_at,
            )
        )
        logger.debug(f"Issued token pair for user {user_id} (session {session_id})")

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            session_id=session_id,
            expires_at=access_expires_at,
            refresh_expires_at=refresh_expires_at,
        )

    async def _matching_session(
        self, token: str, claims: Dict[str, Any], token_type: TokenType
    ) -> Optional[AuthUserSession]:
        row = await self.repos.sessions.get_by_session_id(claims["sid"])
        if row is None or row.user_id != claims["userId"]:
            return None
        stored_hash = row.access_token_hash if token_type == TokenType.ACCESS else row.refresh_token_hash
        if stored_hash != hash_token(token):
            return None
        return row

    async def verify_access_token(self, token: str) -> Optional[AuthenticatedUser]:
        """Verify an access token and its session. Any failure returns ``None``."""
        claims = self._decode(token, TokenType.ACCESS)
        if claims is None:
            return None
        row = await self._matching_session(token, claims, TokenType.ACCESS)
        if row is None or row.is_revoked:
            return None
        await self.repos.sessions.touch(row.session_id)
        return AuthenticatedUser(
            user_id=claims["userId"], email=claims["email"], role=claims["role"], session_id=claims["sid"]
        )

    async def verify_refresh_token(self, token: str) -> Optional[AuthenticatedUser]:
        """Verify a refresh token and its session. Any failure returns ``None``."""
        claims = self._decode(token, TokenType.REFRESH)
        if claims is None:
            return None
        row = await self._matching_session(token, claims, TokenType.REFRESH)
        if row is None or row.is_revoked or row.expires_at < utc_now():
            return None
        return AuthenticatedUser(
            user_id=claims["userId"], email=claims["email"], role=claims["role"], session_id=claims["sid"]
        )

    async def refresh_access_token(self, refresh_token: str) -> Optional[TokenPair]:
        """Rotate a token pair.

        The presented session is revoked as ``rotated`` and a fresh pair is
        issued with the same client metadata and the user's current role.

        Args:
            refresh_token: Refresh token of the current pair

        Returns:
            New TokenPair, or None if the token is invalid, reused, or the user
            is missing or inactive
        """
        claims = self._decode(refresh_token, TokenType.REFRESH)
        if claims is None:
            return None
        row = await self._matching_session(refresh_token, claims, TokenType.REFRESH)
        if row is None:
            return None

        if row.is_revoked:
            if row.revoked_reason == RevocationReason.ROTATED.value:
                count = await self.repos.sessions.revoke_all_for_user(
                    row.user_id, RevocationReason.REFRESH_REUSE.value
                )
                logger.warning(
                    f"Refresh token reuse detected for user {row.user_id} "
                    f"(session {row.session_id}); revoked {count} sessions"
                )
            return None
        if row.expires_at < utc_now():
            return None

        user = await self.repos.users.get_by_id(row.user_id)
        if user is None or not user.is_active:
            logger.info(f"Refresh refused for missing or inactive user {row.user_id}")
            return None

        if not await self.repos.sessions.revoke_matching(row.session_id, RevocationReason.ROTATED.value):
            # Lost a race with a concurrent rotation of the same session.
            return None

        return await self.generate_token_pair(
            user.id,
            user.email,
            user.role,
            ip_address=row.ip_address,
            user_agent=row.user_agent,
            device_type=row.device_type,
        )

    # -----------------------------------------------------------------
    # Revocation and housekeeping
    # -----------------------------------------------------------------

    async def revoke_token(self, token_or_session_id: str, reason: str = RevocationReason.MANUAL.value) -> bool:
        """Revoke the session identified by a session id or either of its tokens.

        Returns:
            True if an unrevoked session was revoked
        """
        key = hash_token(token_or_session_id) if _looks_like_jwt(token_or_session_id) else token_or_session_id
        count = await self.repos.sessions.revoke_matching(key, reason)
        if count:
            logger.info(f"Revoked {count} session(s), reason={reason}")
        return count > 0

    async def revoke_all_user_sessions(
        self,
        user_id: str,
        except_session_id: Optional[str] = None,
        reason: str = RevocationReason.LOGOUT_ALL.value,
    ) -> int:
        """Revoke every active session of a user, optionally keeping one."""
        count = await self.repos.sessions.revoke_all_for_user(user_id, reason, except_session_id=except_session_id)
        logger.info(f"Revoked {count} session(s) for user {user_id}, reason={reason}")
        return count

    async def cleanup_expired_sessions(self) -> int:
        """Delete sessions whose refresh token has expired."""
        count = await self.repos.sessions.delete_expired()
        if count:
            logger.info(f"Purged {count} expired session(s)")
        return count

    async def get_user_active_sessions(self, user_id: str) -> List[SessionInfo]:
        """Unrevoked, unexpired sessions of a user, least recently used first."""
        now = utc_now()
        rows = await self.repos.sessions.list_active_for_user(user_id)
        return [
            SessionInfo(
                session_id=row.session_id,
                ip_address=row.ip_address,
                user_agent=row.user_agent,
                device_type=row.device_type,
                issued_at=row.created_at,
                last_used_at=row.last_activity,
                expires_at=row.expires_at,
            )
            for row in rows
            if row.expires_at >= now
        ]
