"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Conditional initialization (disabled, missing token, enabled)
- Instrumentation feature flags and their failure handling
- Auth event, API request and error helpers with and without Logfire
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI

from buildtrack_auth.core import monitoring


@pytest.fixture(autouse=True)
def _reset_configured():
    with patch.object(monitoring, "_logfire_configured", False):
        yield


@pytest.fixture
def enabled():
    with (
        patch.object(monitoring, "LOGFIRE_ENABLED", True),
        patch.object(monitoring, "LOGFIRE_TOKEN", "test-token"),
    ):
        yield


class TestInitializeLogfire:
    def test_disabled(self):
        with patch.object(monitoring, "LOGFIRE_ENABLED", False), patch.object(monitoring, "logfire") as mock_logfire:
            monitoring.initialize_logfire()

        mock_logfire.configure.assert_not_called()
        assert monitoring.is_logfire_configured() is False

    def test_enabled_without_token(self):
        with (
            patch.object(monitoring, "LOGFIRE_ENABLED", True),
            patch.object(monitoring, "LOGFIRE_TOKEN", ""),
            patch.object(monitoring, "logfire") as mock_logfire,
            patch.object(monitoring, "logger") as mock_logger,
        ):
            monitoring.initialize_logfire()

        mock_logfire.configure.assert_not_called()
        mock_logger.warning.assert_called_once()
        assert monitoring.is_logfire_configured() is False

    def test_enabled_with_app(self, enabled):
        app = FastAPI()
        with patch.object(monitoring, "logfire") as mock_logfire:
            monitoring.initialize_logfire(app)

        mock_logfire.configure.assert_called_once()
        assert mock_logfire.configure.call_args.kwargs["token"] == "test-token"
        assert mock_logfire.configure.call_args.kwargs["service_name"] == monitoring.LOGFIRE_SERVICE_NAME
        mock_logfire.instrument_sqlalchemy.assert_called_once()
        mock_logfire.instrument_fastapi.assert_called_once_with(app=app)
        assert monitoring.is_logfire_configured() is True

    def test_without_app_skips_fastapi(self, enabled):
        with patch.object(monitoring, "logfire") as mock_logfire:
            monitoring.initialize_logfire()
        mock_logfire.instrument_fastapi.assert_not_called()

    def test_feature_flags(self, enabled):
        with (
            patch.object(monitoring, "LOGFIRE_TRACE_SQLALCHEMY", False),
            patch.object(monitoring, "LOGFIRE_TRACE_FASTAPI", False),
            patch.object(monitoring, "logfire") as mock_logfire,
        ):
            monitoring.initialize_logfire(FastAPI())

        mock_logfire.instrument_sqlalchemy.assert_not_called()
        mock_logfire.instrument_fastapi.assert_not_called()

    def test_instrumentation_failure_is_tolerated(self, enabled):
        with patch.object(monitoring, "logfire") as mock_logfire:
            mock_logfire.instrument_sqlalchemy.side_effect = RuntimeError("no engine")
            monitoring.initialize_logfire()
        assert monitoring.is_logfire_configured() is True

    def test_configure_failure_is_logged(self, enabled):
        with patch.object(monitoring, "logfire") as mock_logfire, patch.object(monitoring, "logger") as mock_logger:
            mock_logfire.configure.side_effect = RuntimeError("bad token")
            monitoring.initialize_logfire()

        mock_logger.error.assert_called_once()
        assert monitoring.is_logfire_configured() is False


class TestHelpersWithoutLogfire:
    def test_helpers_log_debug(self):
        with patch.object(monitoring, "logfire") as mock_logfire, patch.object(monitoring, "logger") as mock_logger:
            monitoring.log_api_request("GET", "/health", 200, 1.5)
            monitoring.log_auth_event("login_success", "success", "user-1")
            monitoring.log_error("ValueError", "boom")

        assert mock_logger.debug.call_count == 3
        mock_logfire.info.assert_not_called()
        mock_logfire.error.assert_not_called()


class TestHelpersWithLogfire:
    @pytest.fixture(autouse=True)
    def _configured(self):
        with patch.object(monitoring, "_logfire_configured", True):
            yield

    def test_log_api_request(self):
        with patch.object(monitoring, "logfire") as mock_logfire:
            monitoring.log_api_request("POST", "/api/v1/auth/login", 401, 12.3)

        mock_logfire.info.assert_called_once_with(
            "API request completed", method="POST", path="/api/v1/auth/login", status_code=401, duration_ms=12.3
        )

    def test_log_auth_event(self):
        with patch.object(monitoring, "logfire") as mock_logfire:
            monitoring.log_auth_event("refresh_token_reuse", "blocked", "user-1")

        mock_logfire.info.assert_called_once_with(
            "Auth event", action="refresh_token_reuse", status="blocked", user_id="user-1"
        )

    def test_log_error_with_context(self):
        with patch.object(monitoring, "logfire") as mock_logfire:
            monitoring.log_error("RuntimeError", "boom", {"path": "/x"})

        mock_logfire.error.assert_called_once_with("RuntimeError: boom", path="/x")

    def test_logfire_failures_are_swallowed(self):
        mock_logfire = MagicMock()
        mock_logfire.info.side_effect = RuntimeError("exporter down")
        mock_logfire.error.side_effect = RuntimeError("exporter down")
        with patch.object(monitoring, "logfire", mock_logfire):
            monitoring.log_api_request("GET", "/health", 200, 1.0)
            monitoring.log_auth_event("login_failed", "failure")
            monitoring.log_error("ValueError", "boom")
