"""In-process publish/subscribe for entry start/stop events."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import structlog

from domain.entities.entry_event import EntryEvent

logger = structlog.get_logger()

# Queued to tell a subscriber its stream is over.
STREAM_CLOSED = None

SubscriberQueue = asyncio.Queue[EntryEvent | None]


class EntryEventNotifier:
    """Fans entry events out to every connected client of an owner.

    Delivery is at most once with no replay: a client that was not
    subscribed when an event fired must re-query on reconnect. Publishing
    never waits on a subscriber. A subscriber whose queue is full is dropped
    and its stream is closed so the client reconnects and resynchronizes.
    """

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: dict[UUID, set[SubscriberQueue]] = {}

    @asynccontextmanager
    async def subscribe(self, owner_id: UUID) -> AsyncIterator[SubscriberQueue]:
        """Register a queue for ``owner_id`` for the lifetime of the context."""
        queue: SubscriberQueue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.setdefault(owner_id, set()).add(queue)
        logger.info(
            "event_subscriber_connected",
            owner_id=str(owner_id),
            subscribers=self.subscriber_count(owner_id),
        )
        try:
            yield queue
        finally:
            self._discard(owner_id, queue)
            logger.info(
                "event_subscriber_disconnected",
                owner_id=str(owner_id),
                subscribers=self.subscriber_count(owner_id),
            )

    def publish(self, owner_id: UUID, event: EntryEvent) -> int:
        """Queue ``event`` for every subscriber of ``owner_id``.

        Returns:
            The number of subscribers the event was queued for.
        """
        queues = self._subscribers.get(owner_id)
        if not queues:
            return 0

        delivered = 0
        for queue in list(queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    "event_subscriber_dropped",
                    owner_id=str(owner_id),
                    event_type=event.type.value,
                    reason="queue_full",
                )
                self._discard(owner_id, queue)
                self._close(queue)
            else:
                delivered += 1

        logger.debug(
            "entry_event_published",
            owner_id=str(owner_id),
            event_type=event.type.value,
            delivered=delivered,
        )
        return delivered

    def close_all(self) -> int:
        """End every open stream, e.g. on shutdown. Returns how many were closed."""
        closed = 0
        for owner_id, queues in list(self._subscribers.items()):
            for queue in list(queues):
                self._discard(owner_id, queue)
                self._close(queue)
                closed += 1
        return closed

    def subscriber_count(self, owner_id: UUID | None = None) -> int:
        """Subscribers for one owner, or across all owners."""
        if owner_id is not None:
            return len(self._subscribers.get(owner_id, ()))
        return sum(len(queues) for queues in self._subscribers.values())

    def _discard(self, owner_id: UUID, queue: SubscriberQueue) -> None:
        queues = self._subscribers.get(owner_id)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[owner_id]

    @staticmethod
    def _close(queue: SubscriberQueue) -> None:
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(STREAM_CLOSED)
