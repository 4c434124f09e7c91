"""Unit tests for middleware."""

from collections.abc import AsyncGenerator, AsyncIterator

import pytest
from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from httpx import ASGITransport, AsyncClient

from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from core.config import settings


def _create_app_with_middleware() -> FastAPI:
    """Create a minimal FastAPI app with the production middleware stack."""
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/test")
    async def _json() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/stream")
    async def _stream() -> StreamingResponse:
        async def frames() -> AsyncIterator[str]:
            yield "retry: 3000\n\n"
            yield "event: heartbeat\ndata: {}\n\n"

        return StreamingResponse(frames(), media_type="text/event-stream")

    return app


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=_create_app_with_middleware())
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.mark.asyncio
    async def test_adds_security_headers(self, client: AsyncClient):
        response = await client.get("/test")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["referrer-policy"] == "strict-origin-when-cross-origin"

    @pytest.mark.asyncio
    async def test_no_hsts_outside_production(self, client: AsyncClient):
        response = await client.get("/test")

        assert "strict-transport-security" not in response.headers

    @pytest.mark.asyncio
    async def test_hsts_in_production(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings, "app_env", "production")

        response = await client.get("/test")

        assert response.headers["strict-transport-security"].startswith("max-age=")


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    @pytest.mark.asyncio
    async def test_generates_distinct_request_ids(self, client: AsyncClient):
        r1 = await client.get("/test")
        r2 = await client.get("/test")

        assert r1.headers["x-request-id"]
        assert r1.headers["x-request-id"] != r2.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_propagates_existing_request_id(self, client: AsyncClient):
        response = await client.get("/test", headers={"X-Request-ID": "custom-req-123"})

        assert response.headers["x-request-id"] == "custom-req-123"


class TestStreamingThroughMiddleware:
    """Event streams pass through the stack unbuffered and unchanged."""

    @pytest.mark.asyncio
    async def test_stream_body_and_headers(self, client: AsyncClient):
        response = await client.get("/stream")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.text == "retry: 3000\n\nevent: heartbeat\ndata: {}\n\n"


class TestRequestIDValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["x" * 65, "has spaces", "semi;colon", ""])
    async def test_replaces_malformed_request_id(self, client: AsyncClient, bad_id: str):
        response = await client.get("/test", headers={"X-Request-ID": bad_id})

        assert response.headers["x-request-id"] != bad_id
        assert len(response.headers["x-request-id"]) == 36
