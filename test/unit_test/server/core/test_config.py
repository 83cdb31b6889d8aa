"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables using the
names documented in .env.example, that the grouped configuration views are
built from them and that reload_settings picks up changed values.
"""

from pathlib import Path

import pytest

from buildtrack_auth.server.core import config
from buildtrack_auth.server.core.config import (
    CORSConfig,
    CryptoConfig,
    JWTConfig,
    Settings,
    get_settings,
    reload_settings,
)


@pytest.fixture
def env_example_path() -> Path:
    """Get path to .env.example file."""
    return Path(__file__).resolve().parent.parent.parent.parent.parent / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_documented_names_bind(self, env_example_vars: dict[str, str], monkeypatch):
        for key in (
            "BUILDTRACK_AUTH_SERVER_PORT",
            "JWT_ACCESS_TOKEN_TTL_MINUTES",
            "JWT_REFRESH_TOKEN_TTL_DAYS",
            "JWT_ISSUER",
            "TOTP_WINDOW",
            "TOTP_ISSUER",
            "MAX_VERIFICATION_ATTEMPTS",
        ):
            monkeypatch.setenv(key, env_example_vars[key])

        settings = Settings()

        assert settings.server_port == int(env_example_vars["BUILDTRACK_AUTH_SERVER_PORT"])
        assert settings.jwt_access_token_ttl_minutes == 15
        assert settings.jwt_refresh_token_ttl_days == 30
        assert settings.jwt_issuer == "construction-management-app"
        assert settings.totp_window == 2
        assert settings.totp_issuer == "Construction Manager"
        assert settings.max_verification_attempts == 5

    def test_secrets_bind(self, monkeypatch):
        monkeypatch.setenv("JWT_ACCESS_SECRET", "a" * 32)
        monkeypatch.setenv("JWT_REFRESH_SECRET", "r" * 32)
        monkeypatch.setenv("ENCRYPTION_KEY", "k" * 32)

        settings = Settings()

        assert settings.jwt_access_secret == "a" * 32
        assert settings.jwt_refresh_secret == "r" * 32
        assert settings.encryption_key == "k" * 32

    def test_boolean_flags(self, monkeypatch):
        monkeypatch.setenv("AUTO_VERIFY_EMAIL", "false")
        monkeypatch.setenv("AUTO_INIT_SECRETS", "true")

        settings = Settings()

        assert settings.auto_verify_email is False
        assert settings.auto_init_secrets is True

    def test_cors_origins_from_json_list(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://app.buildtrack.example", "http://localhost:3000"]')
        settings = Settings()
        assert settings.cors_origins == ["https://app.buildtrack.example", "http://localhost:3000"]

    def test_names_are_case_sensitive(self, monkeypatch):
        monkeypatch.delenv("JWT_ISSUER", raising=False)
        monkeypatch.setenv("jwt_issuer", "lowercase-issuer")
        assert Settings().jwt_issuer == "construction-management-app"

    def test_init_by_alias(self):
        settings = Settings(JWT_ISSUER="explicit-issuer", BCRYPT_ROUNDS=10)
        assert settings.jwt_issuer == "explicit-issuer"
        assert settings.bcrypt_rounds == 10

    def test_default_secret_names(self, monkeypatch):
        for name in ("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET", "ENCRYPTION_KEY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.default_secret_names() == ["JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET", "ENCRYPTION_KEY"]

    def test_configured_secrets_are_not_defaults(self):
        settings = Settings(_env_file=None, JWT_REFRESH_SECRET="r" * 32)
        assert settings.default_secret_names() == []


class TestGroupedConfigs:
    """Test the grouped configuration views."""

    def test_jwt_config(self):
        settings = Settings(JWT_ACCESS_SECRET="access", JWT_REFRESH_SECRET="refresh", JWT_ACCESS_TOKEN_TTL_MINUTES=5)
        jwt = settings.jwt
        assert isinstance(jwt, JWTConfig)
        assert jwt.access_secret == "access"
        assert jwt.refresh_secret == "refresh"
        assert jwt.access_token_ttl_minutes == 5
        assert jwt.algorithm == "HS256"

    def test_crypto_config(self):
        settings = Settings(ENCRYPTION_KEY="key", BCRYPT_ROUNDS=6, TOTP_STEP=60)
        crypto = settings.crypto
        assert isinstance(crypto, CryptoConfig)
        assert crypto.encryption_key == "key"
        assert crypto.bcrypt_rounds == 6
        assert crypto.totp_step == 60
        assert crypto.verification_code_ttl_minutes == 10
        assert crypto.password_reset_ttl_minutes == 60

    def test_cors_config(self):
        settings = Settings(CORS_ORIGINS=["https://a.example"], CORS_ALLOW_CREDENTIALS=False)
        cors = settings.cors
        assert isinstance(cors, CORSConfig)
        assert cors.origins == ["https://a.example"]
        assert cors.allow_credentials is False
        assert cors.allow_methods == ["*"]


class TestSettingsCache:
    """Test get_settings / reload_settings."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reload_picks_up_environment(self, monkeypatch):
        before = get_settings()
        monkeypatch.setenv("JWT_ISSUER", "reloaded-issuer")

        assert get_settings().jwt_issuer == before.jwt_issuer
        reloaded = reload_settings()

        assert reloaded is not before
        assert get_settings() is reloaded
        assert reloaded.jwt_issuer == "reloaded-issuer"

    def test_lazy_first_load(self, monkeypatch):
        monkeypatch.setattr(config, "_settings", None)
        assert isinstance(get_settings(), Settings)
