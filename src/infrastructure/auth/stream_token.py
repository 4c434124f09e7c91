"""Short-lived tokens for the entry event stream.

Browsers' ``EventSource`` cannot send an ``Authorization`` header, so a
client first exchanges its bearer token for an opaque stream token and then
passes it as a query parameter. Tokens live in process memory and expire
after a few seconds.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import structlog

from core.clock import Clock

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class StreamToken:
    """An issued stream token and the owner it authenticates."""

    token: str
    owner_id: UUID
    expires_at: datetime


class StreamTokenService:
    """Issues and validates stream tokens bound to one owner."""

    def __init__(self, ttl_seconds: int = 30, clock: Optional[Clock] = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or Clock()
        self._tokens: dict[str, StreamToken] = {}

    def issue(self, owner_id: UUID) -> StreamToken:
        """Create a new token for ``owner_id``, purging expired ones first."""
        now = self._clock.now()
        self._purge_expired(now)
        issued = StreamToken(
            token=secrets.token_urlsafe(32),
            owner_id=owner_id,
            expires_at=now + self._ttl,
        )
        self._tokens[issued.token] = issued
        logger.debug(
            "stream_token_issued",
            owner_id=str(owner_id),
            expires_at=issued.expires_at.isoformat(),
        )
        return issued

    def validate(self, token: str) -> Optional[UUID]:
        """Return the owner for a live token, or None if unknown or expired."""
        issued = self._tokens.get(token)
        if issued is None:
            return None
        if issued.expires_at <= self._clock.now():
            del self._tokens[token]
            logger.debug("stream_token_expired", owner_id=str(issued.owner_id))
            return None
        return issued.owner_id

    def __len__(self) -> int:
        return len(self._tokens)

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, issued in self._tokens.items() if issued.expires_at <= now]
        for key in expired:
            del self._tokens[key]
