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
    AuthenticationAppError,
    AuthorizationAppError,
    ConflictAppError,
    NotFoundAppError,
    OutOfStockAppError,
    RateLimitExceededAppError,
    ValidationAppError,
)
from app.core.exception_handlers import setup_exception_handlers, status_code_for


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

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(code="test_validation", message="Test validation error")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "test_validation"
        assert data["error"]["message"] == "Test validation error"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_out_of_stock_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        """Out-of-stock is a client error carrying the product id."""
        @app_with_handlers.get("/test-stock")
        async def test_endpoint():
            raise OutOfStockAppError(
                code="out_of_stock",
                message="Product is out of stock",
                details={"product_id": 7},
            )

        response = client.get("/test-stock")

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"product_id": 7}

    def test_authentication_error_returns_401(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify AuthenticationAppError returns 401 with a Bearer challenge."""
        @app_with_handlers.get("/test-auth")
        async def test_endpoint():
            raise AuthenticationAppError(code="invalid_token", message="Invalid or expired token")

        response = client.get("/test-auth")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "invalid_token"

    def test_authorization_error_returns_403(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-role")
        async def test_endpoint():
            raise AuthorizationAppError(code="insufficient_role", message="Forbidden: insufficient role")

        response = client.get("/test-role")

        assert response.status_code == 403
        assert "WWW-Authenticate" not in response.headers

    def test_not_found_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-missing")
        async def test_endpoint():
            raise NotFoundAppError(code="order_not_found", message="Order not found")

        assert client.get("/test-missing").status_code == 404

    def test_rate_limit_error_uses_back_off_body(self, client: TestClient, app_with_handlers: FastAPI):
        """The 429 body is flat so clients can read window and maxRequests."""
        @app_with_handlers.get("/test-limit")
        async def test_endpoint():
            raise RateLimitExceededAppError(
                code="rate_limit_exceeded",
                message="Too many requests",
                details={"window": "900s", "max_requests": 100},
            )

        response = client.get("/test-limit")

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests", "window": "900s", "maxRequests": 100}

    @pytest.mark.parametrize(
        "error_type, expected",
        [
            (ValidationAppError, 400),
            (ConflictAppError, 400),
            (OutOfStockAppError, 400),
            (AuthenticationAppError, 401),
            (AuthorizationAppError, 403),
            (NotFoundAppError, 404),
            (RateLimitExceededAppError, 429),
            (AppError, 400),
        ],
    )
    def test_status_mapping(self, error_type: type[AppError], expected: int):
        assert status_code_for(error_type(code="c", message="m")) == expected


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("database connection failed at 10.0.0.5")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "10.0.0.5" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        response_text = response_body.decode()
        data = json.loads(response_text)
        assert data["error"]["code"] == "internal_server_error"
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
