"""Time log entry repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.time_log_entry import TimeLogEntry, TitleSuggestion


class ITimeLogEntryRepository(Protocol):
    """Repository interface for TimeLogEntry entities."""

    async def get(self, id: UUID) -> TimeLogEntry | None:
        """Get an entry by ID."""
        ...

    async def get_many(self, ids: list[UUID]) -> list[TimeLogEntry]:
        """Get every entry whose ID is in ``ids`` (missing IDs are skipped)."""
        ...

    async def get_active(self, owner_id: UUID) -> TimeLogEntry | None:
        """Get the owner's active entry, if any. Never more than one."""
        ...

    async def get_in_range(
        self,
        owner_id: UUID,
        start_from: datetime,
        start_to: datetime,
        limit: int,
        offset: int,
    ) -> list[TimeLogEntry]:
        """Get one page of entries with start_time in [start_from, start_to), newest first."""
        ...

    async def count_in_range(
        self, owner_id: UUID, start_from: datetime, start_to: datetime
    ) -> int:
        """Count entries with start_time in [start_from, start_to)."""
        ...

    async def get_all_in_range(
        self, owner_id: UUID, start_from: datetime, start_to: datetime
    ) -> list[TimeLogEntry]:
        """Get every entry with start_time in [start_from, start_to), newest first."""
        ...

    async def get_tag_lists(self, owner_id: UUID) -> list[list[str]]:
        """Get the tag list of every entry the owner has."""
        ...

    async def search_titles(
        self, owner_id: UUID, tokens: list[str], limit: int
    ) -> list[TitleSuggestion]:
        """Distinct titles containing every token, latest first."""
        ...

    async def create(self, entry: TimeLogEntry) -> TimeLogEntry:
        """Insert an entry.

        Raises:
            ActiveEntryConflictError: the entry is active and the owner
                already has an active entry.
        """
        ...

    async def update(self, entry: TimeLogEntry) -> TimeLogEntry:
        """Replace an existing entry's mutable fields."""
        ...

    async def stop_if_active(self, id: UUID, end_time: datetime) -> bool:
        """Set end_time only if the entry is still active; report whether it was."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete an entry and return success status."""
        ...
