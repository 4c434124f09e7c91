"""JWT authentication provider implementation.

Credentials are issued by the identity service; this API only validates
them. Expected payload:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "name": "Jane",
        "exp": 1234567890
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()


class JWTAuthProvider:
    """JWT-based authentication provider (shared-secret HS256)."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a JWT token and extract user info.

        Args:
            token: The JWT to validate

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_aud": False},
            )
        except ExpiredSignatureError:
            logger.debug("token_expired")
            return None
        except JWTError as exc:
            logger.debug("token_rejected", reason=str(exc))
            return None

        subject = payload.get("sub")
        if not subject:
            return None
        try:
            user_id = UUID(subject)
        except ValueError:
            logger.debug("token_rejected", reason="subject is not a UUID")
            return None

        return TokenUser(
            id=user_id,
            email=payload.get("email"),
            display_name=payload.get("name"),
        )

    def create_token(self, user: TokenUser) -> str:
        """
        Create a JWT token for a user (used by tests and local tooling).

        Args:
            user: The user to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": str(user.id),
            "exp": expire,
        }
        if user.email:
            payload["email"] = user.email
        if user.display_name:
            payload["name"] = user.display_name

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
