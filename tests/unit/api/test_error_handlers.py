"""Tests for the global exception handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gatehouse.api.app import register_exception_handlers
from gatehouse.api.exceptions import (
    InvalidRequestError,
    RateLimitExceededError,
    TenantNotFoundError,
)


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/not-found")
    async def not_found() -> None:
        raise TenantNotFoundError("Project not found")

    @app.get("/bad")
    async def bad() -> None:
        raise InvalidRequestError("Invalid host format")

    @app.get("/limited")
    async def limited() -> None:
        raise RateLimitExceededError(
            "Rate limit exceeded", limit=100, reset=1_700_000_100, retry_after=42
        )

    @app.get("/crash")
    async def crash() -> None:
        raise RuntimeError("kaboom")

    @app.get("/typed")
    async def typed(n: int) -> dict[str, int]:
        return {"n": n}

    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:
    """Error responses share the {"error": {code, message}} shape."""

    def test_api_error(self, client: TestClient) -> None:
        response = client.get("/not-found")
        assert response.status_code == 404
        assert response.json() == {
            "error": {"code": "TENANT_NOT_FOUND", "message": "Project not found"}
        }

    def test_invalid_request(self, client: TestClient) -> None:
        response = client.get("/bad")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_rate_limit_headers(self, client: TestClient) -> None:
        """429 responses carry Retry-After and rate limit headers."""
        response = client.get("/limited")
        assert response.status_code == 429
        assert response.headers["retry-after"] == "42"
        assert response.headers["x-ratelimit-limit"] == "100"
        assert response.headers["x-ratelimit-remaining"] == "0"
        assert response.headers["x-ratelimit-reset"] == "1700000100"

    def test_validation_error(self, client: TestClient) -> None:
        """Request validation failures are 400 with details."""
        response = client.get("/typed", params={"n": "abc"})
        assert response.status_code == 400
        body = response.json()["error"]
        assert body["code"] == "INVALID_REQUEST"
        assert body["details"][0]["field"] == "query.n"

    def test_unexpected_error(self, client: TestClient) -> None:
        """Unhandled exceptions do not leak details."""
        response = client.get("/crash")
        assert response.status_code == 500
        assert response.json() == {
            "error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
        }
