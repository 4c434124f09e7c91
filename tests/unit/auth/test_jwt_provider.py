"""Unit tests for JWTAuthProvider."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt as jose_jwt

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_hs256_token(payload: dict, secret: str = "test-secret") -> str:
    """Create an HS256-signed JWT with a given payload."""
    return jose_jwt.encode(payload, secret, algorithm="HS256")


def _in_an_hour() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=1)


@pytest.fixture
def provider() -> JWTAuthProvider:
    return JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=30)


# ---------------------------------------------------------------------------
# Tests: round trip through create_token
# ---------------------------------------------------------------------------


class TestCreateToken:
    async def test_should_validate_its_own_tokens(self, provider: JWTAuthProvider):
        user = TokenUser(id=uuid4(), email="jane@example.com", display_name="Jane")

        result = await provider.validate_token(provider.create_token(user))

        assert result == user

    async def test_should_omit_optional_claims(self, provider: JWTAuthProvider):
        user = TokenUser(id=uuid4())

        token = provider.create_token(user)
        claims = jose_jwt.get_unverified_claims(token)

        assert claims["sub"] == str(user.id)
        assert "email" not in claims
        assert "name" not in claims


# ---------------------------------------------------------------------------
# Tests: validate_token claim handling
# ---------------------------------------------------------------------------


class TestValidateTokenClaims:
    async def test_should_accept_token_without_email(self, provider: JWTAuthProvider):
        user_id = uuid4()
        token = _make_hs256_token({"sub": str(user_id), "exp": _in_an_hour()})

        result = await provider.validate_token(token)

        assert result is not None
        assert result.id == user_id
        assert result.email is None

    async def test_should_return_none_when_token_has_no_sub_claim(
        self, provider: JWTAuthProvider
    ):
        token = _make_hs256_token({"email": "user@example.com", "exp": _in_an_hour()})

        assert await provider.validate_token(token) is None

    async def test_should_return_none_when_sub_is_not_a_uuid(self, provider: JWTAuthProvider):
        token = _make_hs256_token({"sub": "user-42", "exp": _in_an_hour()})

        assert await provider.validate_token(token) is None

    async def test_should_return_none_for_wrong_secret(self, provider: JWTAuthProvider):
        token = _make_hs256_token({"sub": str(uuid4()), "exp": _in_an_hour()}, secret="other")

        assert await provider.validate_token(token) is None

    async def test_should_return_none_for_expired_token(self, provider: JWTAuthProvider):
        expired = datetime.now(timezone.utc) - timedelta(minutes=1)
        token = _make_hs256_token({"sub": str(uuid4()), "exp": expired})

        assert await provider.validate_token(token) is None

    async def test_should_return_none_for_garbage(self, provider: JWTAuthProvider):
        assert await provider.validate_token("not.a.jwt") is None
