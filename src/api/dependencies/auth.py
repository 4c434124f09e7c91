"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import settings
from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.auth.stream_token import StreamTokenService

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

# Singleton auth provider
_auth_provider: JWTAuthProvider | None = None

# Singleton stream token store (in-process)
_stream_token_service: StreamTokenService | None = None


def get_auth_provider() -> JWTAuthProvider:
    """Get or create the auth provider singleton."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


def get_stream_token_service() -> StreamTokenService:
    """Get or create the stream token service singleton."""
    global _stream_token_service
    if _stream_token_service is None:
        _stream_token_service = StreamTokenService(ttl_seconds=settings.stream_token_ttl_seconds)
    return _stream_token_service


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Dependency to get the current authenticated user.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    token = credentials.credentials
    user = await auth_provider.validate_token(token)

    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    return user


async def get_stream_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    token: Annotated[str | None, Query(description="Stream token from /events/token")] = None,
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
    stream_tokens: StreamTokenService = Depends(get_stream_token_service),
) -> TokenUser:
    """
    Dependency for the event stream: accepts a stream token or a bearer token.

    Raises:
        AuthenticationError: If neither is provided or the one given is invalid
    """
    if token:
        owner_id = stream_tokens.validate(token)
        if owner_id is None:
            raise AuthenticationError(
                message="Invalid or expired stream token",
                error_code=ErrorCode.INVALID_TOKEN,
            )
        return TokenUser(id=owner_id)

    return await get_current_user(credentials, auth_provider)


# Type aliases for convenience in route handlers
CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
StreamUser = Annotated[TokenUser, Depends(get_stream_user)]
