"""Tests for global exception handlers.

Validates that domain errors map to the right HTTP status, that unexpected
errors do not leak details, and that 429s keep their own format.
"""

import asyncio
import json
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from gatekeeper.core.errors import AppError, ConfigurationError, StoreUnavailableError
from gatekeeper.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_store_unavailable_returns_503(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-store")
        async def test_endpoint():
            raise StoreUnavailableError(
                code="window_store_unavailable",
                message="Redis read failed",
                details={"backend": "redis", "operation": "read"},
            )

        response = client.get("/test-store")

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "window_store_unavailable"
        assert error["details"] == {"backend": "redis", "operation": "read"}
        assert "request_id" in error

    def test_configuration_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-config")
        async def test_endpoint():
            raise ConfigurationError(code="invalid_concurrency_capacity", message="capacity must be >= 1")

        response = client.get("/test-config")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "invalid_concurrency_capacity"

    def test_plain_app_error_returns_400_without_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-app")
        async def test_endpoint():
            raise AppError(code="bad_request", message="bad")

        response = client.get("/test-app")

        assert response.status_code == 400
        assert "details" not in response.json()["error"]


class TestRateLimitRejection:
    def test_http_429_keeps_default_body_and_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-429")
        async def test_endpoint():
            raise HTTPException(status_code=429, detail="Too Many Attempts.", headers={"Retry-After": "3"})

        response = client.get("/test-429")

        assert response.status_code == 429
        assert response.json() == {"detail": "Too Many Attempts."}
        assert response.headers["Retry-After"] == "3"


class TestGeneralExceptionHandler:
    def test_unexpected_error_does_not_leak_details(self):
        request = Mock()
        request.url.path = "/v1/admission"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, KeyError("internal-secret")))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["error"]["code"] == "internal_server_error"
        assert "internal-secret" not in response.body.decode()
