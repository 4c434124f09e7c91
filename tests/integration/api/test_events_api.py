"""Integration tests for the entry event stream endpoints."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from infrastructure.auth.provider import TokenUser
from infrastructure.auth.stream_token import StreamTokenService

EVENTS = "/api/v1/time-log-entries/events"


class TestStreamTokenAPI:
    @pytest.mark.asyncio
    async def test_issues_token_for_caller(
        self,
        authenticated_client: AsyncClient,
        stream_token_service: StreamTokenService,
        test_user: TokenUser,
    ):
        response = await authenticated_client.post(f"{EVENTS}/token")

        assert response.status_code == 200
        data = response.json()["data"]
        assert stream_token_service.validate(data["token"]) == test_user.id
        assert datetime.fromisoformat(data["expires_at"]) > datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, authenticated_client: AsyncClient):
        first = (await authenticated_client.post(f"{EVENTS}/token")).json()["data"]["token"]
        second = (await authenticated_client.post(f"{EVENTS}/token")).json()["data"]["token"]

        assert first != second

    @pytest.mark.asyncio
    async def test_token_requires_bearer(self, client: AsyncClient):
        response = await client.post(f"{EVENTS}/token")

        assert response.status_code == 401


class TestSubscribeAPI:
    @pytest.mark.asyncio
    async def test_rejects_unknown_stream_token(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get(EVENTS, params={"token": "bogus"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_requires_credentials(self, client: AsyncClient):
        response = await client.get(EVENTS)

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"
