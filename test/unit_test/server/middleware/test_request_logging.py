"""
Unit tests for the request logging middleware.

Covers timing header injection, reporting through log_api_request, slow
request warnings and failures raised downstream.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from starlette.responses import Response

from buildtrack_auth.server.middleware import RequestLoggingMiddleware

MODULE = "buildtrack_auth.server.middleware.request_logging"


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/auth/login"
    request.client = MagicMock()
    request.client.host = "10.0.0.7"
    request.state = MagicMock()
    return request


@pytest.fixture
def middleware():
    return RequestLoggingMiddleware(app=MagicMock())


class TestRequestLoggingDispatch:
    @pytest.mark.asyncio
    async def test_successful_request(self, middleware, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        with patch(f"{MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        assert float(response.headers["X-Process-Time"]) >= 0
        mock_log.assert_called_once()
        kwargs = mock_log.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["path"] == "/api/v1/auth/login"
        assert kwargs["status_code"] == 200

    @pytest.mark.asyncio
    async def test_error_status_is_reported(self, middleware, mock_request):
        async def call_next(request):
            return Response(status_code=401)

        with patch(f"{MODULE}.log_api_request") as mock_log:
            await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args.kwargs["status_code"] == 401

    @pytest.mark.asyncio
    async def test_exception_is_logged_and_reraised(self, middleware, mock_request):
        async def call_next(request):
            raise RuntimeError("downstream failure")

        with patch(f"{MODULE}.log_api_request") as mock_log, patch(f"{MODULE}.logger") as mock_logger:
            with pytest.raises(RuntimeError, match="downstream failure"):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args.kwargs["status_code"] == 500
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_slow_request_warning(self, middleware, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        # perf_counter is read at start and at the end of the request
        with (
            patch(f"{MODULE}.time") as mock_time,
            patch(f"{MODULE}.log_api_request"),
            patch(f"{MODULE}.logger") as mock_logger,
        ):
            mock_time.perf_counter.side_effect = [100.0, 102.5]
            response = await middleware.dispatch(mock_request, call_next)

        assert response.headers["X-Process-Time"] == "2500.00"
        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]

    @pytest.mark.asyncio
    async def test_fast_request_has_no_warning(self, middleware, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        with (
            patch(f"{MODULE}.time") as mock_time,
            patch(f"{MODULE}.log_api_request"),
            patch(f"{MODULE}.logger") as mock_logger,
        ):
            mock_time.perf_counter.side_effect = [100.0, 100.01]
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_request_without_client(self, middleware, mock_request):
        mock_request.client = None

        async def call_next(request):
            return Response(status_code=204)

        with patch(f"{MODULE}.log_api_request"):
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 204
