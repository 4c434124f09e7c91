"""Per-owner mutual exclusion for lifecycle writes."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID


class OwnerLockRegistry:
    """Hands out one ``asyncio.Lock`` per owner id.

    Writers for the same owner queue behind each other; writers for different
    owners never touch the same lock. A lock is dropped from the registry as
    soon as nobody holds or waits for it, so the registry stays proportional
    to the number of owners with in-flight writes.

    This only serializes writers inside one process. Across processes the
    active-entry unique index is the backstop.
    """

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._users: dict[UUID, int] = {}

    @asynccontextmanager
    async def hold(self, owner_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[owner_id] = lock
        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[owner_id] - 1
            if remaining:
                self._users[owner_id] = remaining
            else:
                del self._users[owner_id]
                del self._locks[owner_id]

    def __len__(self) -> int:
        return len(self._locks)
