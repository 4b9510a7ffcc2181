"""
Unit tests for exception handlers.

Tests cover:
- AppException handler response format
- Validation error handler formatting
- General exception handler (debug vs production)
- Rate limit handler response format
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded

from docvault.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from docvault.core.handlers import (
    app_exception_handler,
    general_exception_handler,
    rate_limit_handler,
    validation_exception_handler,
)


@pytest.fixture
def mock_request() -> MagicMock:
    """Create a mock request with request_id in state."""
    request = MagicMock(spec=Request)
    request.state.request_id = "test-request-123"
    request.client.host = "127.0.0.1"
    return request


@pytest.fixture
def mock_request_no_id() -> MagicMock:
    """Create a mock request without request_id."""
    request = MagicMock(spec=Request)
    request.state = MagicMock(spec=[])  # No request_id attribute
    request.client.host = "127.0.0.1"
    return request


class TestAppExceptionHandler:
    """Tests for app_exception_handler."""

    @pytest.mark.asyncio
    async def test_forbidden_has_fixed_message_and_no_details(
        self, mock_request: MagicMock
    ) -> None:
        response = await app_exception_handler(mock_request, ForbiddenError())
        body = json.loads(response.body)

        assert response.status_code == 403
        assert body["error"]["code"] == "ForbiddenError"
        assert body["error"]["details"] == {}
        assert body["meta"]["request_id"] == "test-request-123"

    @pytest.mark.asyncio
    async def test_validation_error_reports_field(self, mock_request: MagicMock) -> None:
        exc = ValidationError(field="code", reason="must be an integer")
        response = await app_exception_handler(mock_request, exc)
        body = json.loads(response.body)

        assert response.status_code == 422
        assert body["error"]["details"] == {"field": "code", "reason": "must be an integer"}

    @pytest.mark.asyncio
    async def test_domain_error_code(self, mock_request: MagicMock) -> None:
        exc = ConflictError(
            message="Invoices",
            error_code="UserUsedInRouteModel",
            details={"route_model": "Invoices"},
        )
        response = await app_exception_handler(mock_request, exc)
        body = json.loads(response.body)

        assert response.status_code == 409
        assert body["error"]["code"] == "UserUsedInRouteModel"
        assert body["error"]["details"]["route_model"] == "Invoices"

    @pytest.mark.asyncio
    async def test_handles_missing_request_id(self, mock_request_no_id: MagicMock) -> None:
        response = await app_exception_handler(mock_request_no_id, NotFoundError(resource="User"))
        body = json.loads(response.body)

        assert response.status_code == 404
        assert body["meta"]["request_id"] is None


class TestValidationExceptionHandler:
    """Tests for validation_exception_handler."""

    @pytest.mark.asyncio
    async def test_returns_422_status(self, mock_request: MagicMock) -> None:
        exc = MagicMock(spec=RequestValidationError)
        exc.errors.return_value = []

        response = await validation_exception_handler(mock_request, exc)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_formats_field_errors(self, mock_request: MagicMock) -> None:
        exc = MagicMock(spec=RequestValidationError)
        exc.errors.return_value = [
            {"loc": ("body", "email"), "msg": "Invalid email", "type": "value_error"},
            {"loc": ("query", "sort_column"), "msg": "Too large", "type": "less_than_equal"},
        ]

        response = await validation_exception_handler(mock_request, exc)
        body = json.loads(response.body)

        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"] == [
            {"field": "email", "reason": "Invalid email", "type": "value_error"},
            {"field": "sort_column", "reason": "Too large", "type": "less_than_equal"},
        ]


class TestGeneralExceptionHandler:
    """Tests for general_exception_handler."""

    @pytest.mark.asyncio
    async def test_hides_details_in_production(self, mock_request: MagicMock) -> None:
        exc = RuntimeError("Sensitive database error")

        with patch("docvault.core.handlers.settings") as mock_settings:
            mock_settings.debug = False
            response = await general_exception_handler(mock_request, exc)

        body = json.loads(response.body)

        assert response.status_code == 500
        assert body["error"]["code"] == "UnknownError"
        assert "Sensitive database error" not in body["error"]["message"]

    @pytest.mark.asyncio
    async def test_shows_details_in_debug(self, mock_request: MagicMock) -> None:
        exc = RuntimeError("Debug error message")

        with patch("docvault.core.handlers.settings") as mock_settings:
            mock_settings.debug = True
            response = await general_exception_handler(mock_request, exc)

        body = json.loads(response.body)
        assert body["error"]["message"] == "Debug error message"


class TestRateLimitHandler:
    """Tests for rate_limit_handler."""

    @pytest.mark.asyncio
    async def test_returns_429(self, mock_request: MagicMock) -> None:
        exc = MagicMock(spec=RateLimitExceeded)
        response = await rate_limit_handler(mock_request, exc)
        body = json.loads(response.body)

        assert response.status_code == 429
        assert body["error"]["code"] == "RATE_LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_handles_missing_client(self) -> None:
        request = MagicMock(spec=Request)
        request.state.request_id = "test-123"
        request.client = None

        response = await rate_limit_handler(request, MagicMock(spec=RateLimitExceeded))
        assert response.status_code == 429
