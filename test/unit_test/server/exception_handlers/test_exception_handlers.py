"""
Unit tests for server exception handlers.

Tests cover rendering of AuthError subclasses and the global handler for
unexpected exceptions, both directly and through a small FastAPI app.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from buildtrack_auth.auth.errors import (
    AuthError,
    InvalidCredentialsError,
    MFARequiredError,
    WeakPasswordError,
)
from buildtrack_auth.server.exception_handlers import setup_exception_handlers
from buildtrack_auth.server.exception_handlers.global_handler import (
    auth_error_handler,
    global_exception_handler,
)


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/auth/login"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestAuthErrorHandler:
    """Rendering of expected auth failures."""

    @pytest.mark.asyncio
    async def test_renders_status_and_message(self, mock_request):
        response = await auth_error_handler(mock_request, InvalidCredentialsError())

        assert isinstance(response, JSONResponse)
        assert response.status_code == 401
        assert json.loads(response.body) == {"success": False, "message": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_extra_fields_are_merged(self, mock_request):
        response = await auth_error_handler(mock_request, MFARequiredError())

        body = json.loads(response.body)
        assert body["requires_mfa"] is True
        assert body["success"] is False

    @pytest.mark.asyncio
    async def test_weak_password_lists_issues(self, mock_request):
        exc = WeakPasswordError(["Password is too short"], ["Use at least 8 characters"])
        response = await auth_error_handler(mock_request, exc)

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body["issues"] == ["Password is too short"]
        assert body["suggestions"] == ["Use at least 8 characters"]


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        exc = ValueError("Test error")

        with patch("buildtrack_auth.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

            mock_logger.error.assert_called_once()
            call_args = mock_logger.error.call_args
            assert "Unhandled exception" in call_args[0][0]
            assert call_args[1]["extra"]["error_type"] == "ValueError"

    @pytest.mark.asyncio
    async def test_exception_handler_returns_500(self, mock_request):
        exc = RuntimeError("database exploded")

        with patch("buildtrack_auth.server.exception_handlers.global_handler.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["success"] is False
        assert body["message"] == "Internal server error"
        assert body["error_type"] == "RuntimeError"
        assert body["error_id"] == id(exc)
        assert "database exploded" not in response.body.decode()

    @pytest.mark.asyncio
    async def test_exception_handler_reports_to_monitoring(self, mock_request):
        exc = KeyError("missing")

        with patch("buildtrack_auth.server.exception_handlers.global_handler.log_error") as mock_log_error:
            await global_exception_handler(mock_request, exc)

        mock_log_error.assert_called_once()
        assert mock_log_error.call_args[0][0] == "KeyError"

    @pytest.mark.asyncio
    async def test_request_without_client(self, mock_request):
        mock_request.client = None
        response = await global_exception_handler(mock_request, ValueError("x"))
        assert response.status_code == 500


class TestSetupExceptionHandlers:
    """Handlers registered on a real application."""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/auth-error")
        async def raise_auth_error():
            raise AuthError("Insufficient permissions", status_code=403, required_roles=["admin"])

        @app.get("/boom")
        async def raise_unexpected():
            raise RuntimeError("boom")

        return app

    def test_handlers_registered(self, app):
        assert AuthError in app.exception_handlers
        assert Exception in app.exception_handlers

    @pytest.mark.asyncio
    async def test_auth_error_through_app(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            response = await client.get("/auth-error")

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "Insufficient permissions",
            "required_roles": ["admin"],
        }

    @pytest.mark.asyncio
    async def test_unexpected_error_through_app(self, app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://localhost") as client:
            response = await client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error_type"] == "RuntimeError"
