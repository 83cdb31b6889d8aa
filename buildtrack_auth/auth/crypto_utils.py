"""
Cryptographic helpers for the auth service.

Functions:
- hash_password / verify_password: bcrypt password hashing
- generate_totp_secret / verify_totp_code: RFC 6238 TOTP via pyotp
- encrypt_sensitive_data / decrypt_sensitive_data: AES-256-GCM for data at rest
- generate_verification_code / verify_verification_code: short numeric codes
- generate_password_reset_token / verify_password_reset_token: long reset tokens
- generate_secure_session_id, generate_backup_codes and backup code encryption
- validate_password_strength: password policy scoring

Cost factors, TTLs and key material come from ``get_settings().crypto`` at call
time so that secrets provisioned during startup are honoured.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import re
import secrets
import string
from datetime import timedelta
from typing import List

import bcrypt
import pyotp
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from buildtrack_auth.core.database.base import utc_now
from buildtrack_auth.core.logging_config import get_logger
from buildtrack_auth.core.models.domain import EncryptedData, IssuedCode, PasswordStrength, TOTPSetup
from buildtrack_auth.server.core.config import get_settings

from .errors import DecryptionError, PasswordHashingError

logger = get_logger(__name__)

# bcrypt only considers the first 72 bytes of a password; longer input is rejected.
_BCRYPT_MAX_BYTES = 72
_GCM_NONCE_BYTES = 12

_COMMON_PATTERNS = (
    re.compile(r"123456"),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"qwerty", re.IGNORECASE),
    re.compile(r"(.)\1{2,}"),
)


def _password_bytes(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise ValueError(f"password exceeds {_BCRYPT_MAX_BYTES} bytes")
    return encoded


# =====================================================================
# Passwords
# =====================================================================


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Args:
        password: Clear-text password

    Returns:
        bcrypt hash string (``$2b$...``)

    Raises:
        PasswordHashingError: If the password is longer than 72 bytes or bcrypt
            rejects the input
    """
    rounds = get_settings().crypto.bcrypt_rounds
    try:
        hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    except (ValueError, TypeError) as e:
        logger.error(f"Password hashing failed: {e}")
        raise PasswordHashingError("Failed to hash password") from e
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a bcrypt hash. Malformed or oversized input yields ``False``."""
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Password verification failed on malformed input: {e}")
        return False


# =====================================================================
# TOTP
# =====================================================================


def _totp(secret: str) -> pyotp.TOTP:
    return pyotp.TOTP(secret, interval=get_settings().crypto.totp_step)


def generate_totp_secret(email: str, service_name: str | None = None) -> TOTPSetup:
    """Create a TOTP secret for an account.

    Args:
        email: Account name shown in the authenticator app
        service_name: Issuer label, defaults to ``TOTP_ISSUER``

    Returns:
        TOTPSetup with the base32 secret, ``otpauth://`` URI and backup codes
    """
    issuer = service_name or get_settings().crypto.totp_issuer
    secret = pyotp.random_base32(length=32)
    uri = _totp(secret).provisioning_uri(name=email, issuer_name=issuer)
    return TOTPSetup(secret=secret, qr_code_url=uri, backup_codes=generate_backup_codes())


def verify_totp_code(secret: str, code: str) -> bool:
    """Check a TOTP code, accepting ``TOTP_WINDOW`` steps of drift either way."""
    if not secret or not code:
        return False
    code = code.strip().replace(" ", "")
    if not code.isdigit():
        return False
    try:
        return _totp(secret).verify(code, valid_window=get_settings().crypto.totp_window)
    except (ValueError, TypeError) as e:
        logger.warning(f"TOTP verification error: {e}")
        return False


# =====================================================================
# Sensitive data
# =====================================================================


def _aes_key() -> bytes:
    return hashlib.sha256(get_settings().crypto.encryption_key.encode("utf-8")).digest()


def encrypt_sensitive_data(data: str) -> EncryptedData:
    """Encrypt text with AES-256-GCM.

    Args:
        data: Clear text

    Returns:
        EncryptedData with hex ciphertext (tag appended) and hex nonce
    """
    nonce = secrets.token_bytes(_GCM_NONCE_BYTES)
    ciphertext = AESGCM(_aes_key()).encrypt(nonce, data.encode("utf-8"), None)
    return EncryptedData(encrypted=ciphertext.hex(), iv=nonce.hex())


def decrypt_sensitive_data(encrypted: str, iv: str) -> str:
    """Decrypt the output of :func:`encrypt_sensitive_data`.

    Raises:
        DecryptionError: On malformed hex, a wrong key or tampered ciphertext
    """
    try:
        plaintext = AESGCM(_aes_key()).decrypt(bytes.fromhex(iv), bytes.fromhex(encrypted), None)
        return plaintext.decode("utf-8")
    except (InvalidTag, ValueError, TypeError) as e:
        raise DecryptionError("Failed to decrypt data") from e


# =====================================================================
# One-time codes and tokens
# =====================================================================


def _hash_secret(value: str) -> str:
    key = get_settings().crypto.encryption_key
    return hashlib.sha256((value + key).encode("utf-8")).hexdigest()


def generate_verification_code(length: int = 6) -> IssuedCode:
    """Create a numeric verification code and the hash to persist."""
    code = "".join(secrets.choice(string.digits) for _ in range(length))
    ttl = get_settings().crypto.verification_code_ttl_minutes
    return IssuedCode(code=code, hashed_code=_hash_secret(code), expires_at=utc_now() + timedelta(minutes=ttl))


def verify_verification_code(input_code: str, hashed_code: str) -> bool:
    return hmac.compare_digest(_hash_secret(input_code.strip()), hashed_code)


def generate_password_reset_token() -> IssuedCode:
    """Create a 64-char hex reset token and the hash to persist."""
    token = secrets.token_hex(32)
    ttl = get_settings().crypto.password_reset_ttl_minutes
    return IssuedCode(code=token, hashed_code=_hash_secret(token), expires_at=utc_now() + timedelta(minutes=ttl))


def verify_password_reset_token(input_token: str, hashed_token: str) -> bool:
    return hmac.compare_digest(_hash_secret(input_token.strip()), hashed_token)


def hash_one_time_secret(value: str) -> str:
    """Hash a code or reset token the same way the generators do, for lookups."""
    return _hash_secret(value.strip())


def generate_secure_session_id() -> str:
    return secrets.token_hex(32)


# =====================================================================
# Backup codes
# =====================================================================


def generate_backup_codes(count: int = 8) -> List[str]:
    """Generate MFA backup codes formatted ``XXXX-XXXXXX``."""
    codes = []
    for _ in range(count):
        raw = secrets.token_hex(5).upper()
        codes.append(f"{raw[:4]}-{raw[4:]}")
    return codes


def encrypt_backup_codes(codes: List[str]) -> str:
    """Encrypt backup codes into a JSON ``{"encrypted", "iv"}`` envelope."""
    return encrypt_sensitive_data(json.dumps(codes)).model_dump_json()


def decrypt_backup_codes(blob: str) -> List[str]:
    """Decrypt a backup code envelope. Any failure yields an empty list."""
    try:
        envelope = EncryptedData.model_validate_json(blob)
        codes = json.loads(decrypt_sensitive_data(envelope.encrypted, envelope.iv))
    except (DecryptionError, ValueError, TypeError) as e:
        logger.warning(f"Could not decrypt backup codes: {e}")
        return []
    if not isinstance(codes, list):
        return []
    return [str(c) for c in codes]


# =====================================================================
# Password policy
# =====================================================================


def validate_password_strength(password: str) -> PasswordStrength:
    """Score a password against the account password policy.

    Length earns 1 point (2 from 12 characters), each character class earns 1.
    A common or repeated pattern costs a point. The password is valid when it
    has no issues and a score of at least 4.

    Args:
        password: Candidate password

    Returns:
        PasswordStrength with score, issues and suggestions
    """
    issues: List[str] = []
    suggestions: List[str] = []
    score = 0

    if len(password) < 8:
        issues.append("Password is too short")
        suggestions.append("Use at least 8 characters")
    elif len(password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        issues.append("Password is too long")
        suggestions.append(f"Use at most {_BCRYPT_MAX_BYTES} bytes")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    classes = (
        (r"[A-Z]", "Password has no uppercase letters", "Add at least one uppercase letter"),
        (r"[a-z]", "Password has no lowercase letters", "Add at least one lowercase letter"),
        (r"[0-9]", "Password has no digits", "Add at least one digit"),
        (r"[^A-Za-z0-9]", "Password has no special characters", "Add a special character such as !@#$%"),
    )
    for pattern, issue, suggestion in classes:
        if re.search(pattern, password):
            score += 1
        else:
            issues.append(issue)
            suggestions.append(suggestion)

    for pattern in _COMMON_PATTERNS:
        if pattern.search(password):
            issues.append("Password contains a common or repeated pattern")
            suggestions.append("Avoid common sequences and repeated characters")
            score = max(0, score - 1)
            break

    return PasswordStrength(is_valid=not issues and score >= 4, score=score, issues=issues, suggestions=suggestions)
