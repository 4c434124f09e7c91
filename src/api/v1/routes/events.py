"""Server-Sent Events stream of entry start/stop events."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from uuid import UUID

import orjson
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from api.dependencies.auth import CurrentUser, StreamUser, get_stream_token_service
from api.v1.dependencies import get_event_notifier
from api.v1.schemas.event import StreamTokenData, StreamTokenResponse
from core.config import settings
from core.rate_limit import WRITE_LIMIT, limiter
from domain.services.event_notifier import STREAM_CLOSED, EntryEventNotifier
from infrastructure.auth.stream_token import StreamTokenService

logger = structlog.get_logger()

router = APIRouter(prefix="/time-log-entries/events", tags=["events"])

# Clients reconnect after this many milliseconds when the stream drops.
RECONNECT_DELAY_MS = 3000

HEARTBEAT_FRAME = "event: heartbeat\ndata: {}\n\n"


def format_event(event_type: str, payload: dict) -> str:
    """Render one SSE frame."""
    return f"event: {event_type}\ndata: {orjson.dumps(payload).decode()}\n\n"


async def stream_entry_events(
    notifier: EntryEventNotifier,
    owner_id: UUID,
    is_disconnected: Callable[[], Awaitable[bool]],
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``owner_id`` until the client goes away.

    Heartbeat frames carry no data and are sent whenever no event arrived
    for ``heartbeat_seconds``. The stream ends when the notifier drops the
    subscriber; the client then reconnects and re-queries.
    """
    async with notifier.subscribe(owner_id) as queue:
        yield f"retry: {RECONNECT_DELAY_MS}\n\n"
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
            except TimeoutError:
                yield HEARTBEAT_FRAME
                continue
            if event is STREAM_CLOSED:
                logger.info("event_stream_closed_by_server", owner_id=str(owner_id))
                break
            yield format_event(event.type.value, event.to_payload())


@router.post(
    "/token",
    response_model=StreamTokenResponse,
    summary="Get a stream token",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_stream_token(
    request: Request,
    user: CurrentUser,
    stream_tokens: StreamTokenService = Depends(get_stream_token_service),
) -> StreamTokenResponse:
    """
    Exchange the bearer token for a short-lived stream token.

    `EventSource` cannot send headers, so the stream endpoint accepts this
    token as `?token=`. It expires after a few seconds; fetch a new one for
    every (re)connect.
    """
    issued = stream_tokens.issue(user.id)
    return StreamTokenResponse(
        data=StreamTokenData(token=issued.token, expires_at=issued.expires_at)
    )


@router.get(
    "",
    summary="Subscribe to entry events",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "text/event-stream of ENTRY_STARTED and ENTRY_STOPPED events",
            "content": {"text/event-stream": {}},
        },
        401: {"description": "Missing, invalid or expired token"},
    },
)
async def subscribe_entry_events(
    request: Request,
    user: StreamUser,
    notifier: EntryEventNotifier = Depends(get_event_notifier),
) -> StreamingResponse:
    """
    Stream start/stop events for the caller's entries.

    Delivery is best effort with no replay: after reconnecting, clients
    re-query the active entry and day groups. Heartbeat events keep idle
    connections open and carry no data.
    """
    return StreamingResponse(
        stream_entry_events(
            notifier,
            user.id,
            request.is_disconnected,
            settings.event_heartbeat_seconds,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
