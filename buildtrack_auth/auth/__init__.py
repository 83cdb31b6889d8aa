"""
Authentication core.

Modules:
- crypto_utils: password hashing, TOTP, AES-GCM and one-time code helpers
- jwt_utils: TokenManager for JWT pair issuance, verification, rotation and revocation
- auth_service: AuthService implementing login, registration, MFA and password flows
- errors: AuthError hierarchy rendered by the HTTP layer
"""

from .auth_service import AuthService
from .errors import AuthError
from .jwt_utils import TokenManager, decode_token, hash_token

__all__ = ["AuthError", "AuthService", "TokenManager", "decode_token", "hash_token"]
