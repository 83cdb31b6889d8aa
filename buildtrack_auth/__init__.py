"""BuildTrack Auth.

Authentication and session service for the BuildTrack construction-project
management platform.

Core subpackages
----------------

- ``buildtrack_auth.auth``:

  - Password hashing, TOTP and one-time code helpers (``crypto_utils``).
  - JWT access/refresh pair issuance, rotation and revocation (``jwt_utils``).
  - The ``AuthService`` that combines both into login, registration, MFA and
    password management flows, writing every security-relevant step to the
    audit log.

- ``buildtrack_auth.core``:

  - Logging and monitoring configuration.
  - SQLModel entities and async repositories for users, sessions, audit log
    entries and verification codes.

- ``buildtrack_auth.server``:

  - FastAPI application, bearer-token dependencies, exception handlers and the
    secrets bootstrapper that provisions signing keys on first start.

Token lifecycle
---------------

1. ``login`` verifies the password (and TOTP when enabled) and issues a pair.
2. Every request presents the access token; its session row must be unrevoked.
3. ``refresh`` revokes the old session and issues a fresh pair.
4. ``logout`` marks the session row revoked.
"""

__version__ = "0.1.0"
