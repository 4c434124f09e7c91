"""Tests for health check endpoints."""

from collections.abc import AsyncGenerator
from datetime import datetime
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import settings
from domain.services.event_notifier import EntryEventNotifier


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_reports_version_and_environment(self, client: AsyncClient) -> None:
        data = (await client.get("/health")).json()

        assert data["version"] == settings.app_version
        assert data["environment"] == settings.app_env
        assert data["database"] is None

    @pytest.mark.asyncio
    async def test_health_timestamp_is_utc(self, client: AsyncClient) -> None:
        data = (await client.get("/health")).json()

        timestamp = datetime.fromisoformat(data["timestamp"])
        assert timestamp.utcoffset() is not None
        assert timestamp.utcoffset().total_seconds() == 0  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_health_carries_request_id(self, client: AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "probe-1"})

        assert response.headers["x-request-id"] == "probe-1"


class TestDetailedHealthEndpoint:
    """Tests for the dependency-checking health endpoint."""

    @pytest.fixture
    async def detailed_client(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: EntryEventNotifier,
    ) -> AsyncGenerator[AsyncClient, None]:
        from api.v1.dependencies import get_event_notifier
        from infrastructure.database.session import get_async_session
        from main import create_app

        app = create_app()

        async def override_session() -> AsyncGenerator[AsyncSession, None]:
            async with session_factory() as session:
                yield session

        app.dependency_overrides[get_async_session] = override_session
        app.dependency_overrides[get_event_notifier] = lambda: notifier

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c

    @pytest.mark.asyncio
    async def test_reports_database_and_streams(
        self, detailed_client: AsyncClient, notifier: EntryEventNotifier
    ) -> None:
        async with notifier.subscribe(uuid4()):
            data = (await detailed_client.get("/health/detailed")).json()

        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["event_streams"] == 1
