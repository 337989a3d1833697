"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    ConfigurationAppError,
    DocumentStoreAppError,
    GeocodingAppError,
    NotificationAppError,
    QuotaExceededAppError,
    SyncInProgressAppError,
    SyncWriteAppError,
    TransientIOAppError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        "error_type, expected_status",
        [
            (ValidationAppError, 400),
            (SyncInProgressAppError, 409),
            (SyncWriteAppError, 500),
            (DocumentStoreAppError, 502),
            (GeocodingAppError, 502),
            (NotificationAppError, 502),
            (ConfigurationAppError, 503),
            (QuotaExceededAppError, 503),
            (TransientIOAppError, 503),
        ],
    )
    def test_error_type_maps_to_status(
        self,
        client: TestClient,
        app_with_handlers: FastAPI,
        error_type: type[AppError],
        expected_status: int,
    ):
        @app_with_handlers.get("/test-error")
        async def test_endpoint():
            raise error_type(code="test_code", message="Test message")

        response = client.get("/test-error")

        assert response.status_code == expected_status
        data = response.json()
        assert data["error"]["code"] == "test_code"
        assert data["error"]["message"] == "Test message"
        assert "request_id" in data["error"]

    def test_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify details are included when provided."""
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise SyncWriteAppError(
                code="sync_write_failed",
                message="Batched coordinate write failed",
                details={"target": "stores", "pending_writes": 3},
            )

        response = client.get("/test-details")

        assert response.status_code == 500
        details = response.json()["error"]["details"]
        assert details == {"target": "stores", "pending_writes": 3}

    def test_details_omitted_when_empty(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-no-details")
        async def test_endpoint():
            raise ValidationAppError(code="test", message="test")

        data = client.get("/test-no-details").json()

        assert "details" not in data["error"]

    def test_quota_error_sets_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-quota")
        async def test_endpoint():
            raise QuotaExceededAppError(
                code="sheets_quota_exceeded",
                message="quota",
                details={"retry_after": 30},
            )

        response = client.get("/test-quota")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("spreadsheet id 1AbC leaked")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "1AbC" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert "request_id" in data["error"]


def test_setup_exception_handlers_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
