"""Time log entry lifecycle: start, stop, continue, edit, group edit, delete."""

from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from core.clock import Clock
from core.exceptions import (
    ActiveEntryConflictError,
    AppException,
    EntryNotFoundError,
    ErrorCode,
    InvalidGroupEntriesError,
    InvalidTimeRangeError,
    InvalidTimezoneError,
    PageSizeExceededError,
    ValidationError,
)
from core.owner_locks import OwnerLockRegistry
from domain.entities.day_group import DayGroupsView, WeekDay
from domain.entities.entry_event import EntryEvent, EntryEventType
from domain.entities.time_log_entry import (
    MAX_TITLE_LENGTH,
    EntryPage,
    StopResult,
    TimeLogEntry,
    TitleSuggestion,
    normalize_tags,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import aggregation
from domain.services.event_notifier import EntryEventNotifier

logger = structlog.get_logger()

def resolve_timezone(name: str) -> ZoneInfo:
    """Look up an IANA timezone, raising a validation error for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezoneError(name) from exc


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimeLogService:
    """Service layer for time log entries.

    Writes for one owner are serialized through ``OwnerLockRegistry`` so the
    owner never has two active entries. Across processes the store's
    active-entry unique index rejects the losing insert; ``start`` then
    rolls back, re-reads and tries again.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        notifier: Optional[EntryEventNotifier] = None,
        clock: Optional[Clock] = None,
        locks: Optional[OwnerLockRegistry] = None,
        start_retry_attempts: int = 3,
        max_page_size: int = 500,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._clock = clock or Clock()
        self._locks = locks or OwnerLockRegistry()
        self._start_retry_attempts = start_retry_attempts
        self._max_page_size = max_page_size

    # --- Lifecycle ---

    async def start(
        self,
        owner_id: UUID,
        title: str,
        tags: list[str] | None = None,
        metadata: list[str] | None = None,
    ) -> TimeLogEntry:
        """Start a new active entry, stopping the current one first.

        Stopping the previous entry and inserting the new one happen in a
        single transaction, so no reader sees zero or two active entries.
        """
        title = self._clean_title(title)
        tags = normalize_tags(tags)

        async with self._locks.hold(owner_id):
            for attempt in range(1, self._start_retry_attempts + 1):
                try:
                    entry, previous = await self._start_once(
                        owner_id, title, tags, list(metadata or [])
                    )
                except ActiveEntryConflictError:
                    logger.warning(
                        "active_entry_conflict",
                        owner_id=str(owner_id),
                        attempt=attempt,
                    )
                    continue
                break
            else:
                logger.error(
                    "entry_start_retries_exhausted",
                    owner_id=str(owner_id),
                    attempts=self._start_retry_attempts,
                )
                raise AppException(
                    ErrorCode.INTERNAL_ERROR,
                    "Could not start the entry, please retry",
                    500,
                )

        logger.info(
            "entry_started",
            owner_id=str(owner_id),
            entry_id=str(entry.id),
            stopped_entry_id=str(previous.id) if previous else None,
        )
        self._publish(owner_id, EntryEventType.ENTRY_STARTED, entry)
        return entry

    async def _start_once(
        self,
        owner_id: UUID,
        title: str,
        tags: list[str],
        metadata: list[str],
    ) -> tuple[TimeLogEntry, TimeLogEntry | None]:
        async with self._uow_factory() as uow:
            now = self._clock.now()
            start_time = now
            active = await uow.entries.get_active(owner_id)
            if active is not None:
                stop_at = max(now, active.start_time)
                await uow.entries.stop_if_active(active.id, stop_at)
                active.stop(stop_at)
                start_time = stop_at

            entry = TimeLogEntry(
                owner_id=owner_id,
                title=title,
                start_time=start_time,
                tags=tags,
                metadata=metadata,
                created_at=now,
                updated_at=now,
            )
            created = await uow.entries.create(entry)
            await uow.commit()
            return created, active

    async def stop(self, owner_id: UUID) -> StopResult:
        """Stop the owner's active entry. Having nothing to stop is not an error."""
        async with self._locks.hold(owner_id):
            async with self._uow_factory() as uow:
                active = await uow.entries.get_active(owner_id)
                if active is None:
                    return StopResult(stopped=False)

                stop_at = max(self._clock.now(), active.start_time)
                if not await uow.entries.stop_if_active(active.id, stop_at):
                    # Stopped by another process between the read and the write.
                    return StopResult(stopped=False)
                await uow.commit()

        active.stop(stop_at)
        logger.info("entry_stopped", owner_id=str(owner_id), entry_id=str(active.id))
        self._publish(owner_id, EntryEventType.ENTRY_STOPPED, active)
        return StopResult(stopped=True, entry=active)

    async def continue_entry(self, owner_id: UUID, source_entry_id: UUID) -> TimeLogEntry:
        """Start a new entry with the title and tags of an existing one."""
        source = await self.get_entry(source_entry_id, owner_id)
        return await self.start(owner_id, source.title, list(source.tags))

    async def edit(
        self,
        entry_id: UUID,
        owner_id: UUID,
        title: str | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        tags: list[str] | None = None,
    ) -> TimeLogEntry:
        """Change any subset of an entry's title, times and tags.

        Times may not lie in the future and ``end_time`` may not precede the
        effective start. An active entry cannot be given an end time here;
        it is closed through ``stop``.
        """
        async with self._locks.hold(owner_id):
            async with self._uow_factory() as uow:
                entry = await uow.entries.get(entry_id)
                if entry is None or entry.owner_id != owner_id:
                    raise EntryNotFoundError(str(entry_id))

                now = self._clock.now()
                if start_time is not None:
                    start_time = as_utc(start_time)
                    if start_time > now:
                        raise ValidationError(
                            "Start time cannot be in the future",
                            ErrorCode.START_TIME_IN_FUTURE,
                        )
                if end_time is not None:
                    if entry.is_active:
                        raise ValidationError(
                            "End time cannot be set on an active entry",
                            ErrorCode.END_TIME_NOT_ALLOWED,
                        )
                    end_time = as_utc(end_time)
                    if end_time > now:
                        raise ValidationError(
                            "End time cannot be in the future",
                            ErrorCode.END_TIME_IN_FUTURE,
                        )

                effective_start = start_time or entry.start_time
                effective_end = end_time or entry.end_time
                if effective_end is not None and effective_end < effective_start:
                    raise ValidationError(
                        "End time must not be before start time",
                        ErrorCode.END_TIME_BEFORE_START_TIME,
                    )

                if title is not None:
                    entry.title = self._clean_title(title)
                if tags is not None:
                    entry.tags = normalize_tags(tags)
                entry.start_time = effective_start
                entry.end_time = effective_end
                entry.updated_at = now

                updated = await uow.entries.update(entry)
                await uow.commit()

        logger.info("entry_updated", owner_id=str(owner_id), entry_id=str(entry_id))
        return updated

    async def group_edit(
        self,
        owner_id: UUID,
        entry_ids: list[UUID],
        title: str,
        tags: list[str] | None = None,
    ) -> list[TimeLogEntry]:
        """Give several entries the same title and tags, all or nothing."""
        unique_ids = list(dict.fromkeys(entry_ids))
        if not unique_ids:
            raise ValidationError("At least one entry id is required")
        title = self._clean_title(title)
        normalized_tags = normalize_tags(tags)

        async with self._locks.hold(owner_id):
            async with self._uow_factory() as uow:
                found = {
                    entry.id: entry
                    for entry in await uow.entries.get_many(unique_ids)
                    if entry.owner_id == owner_id
                }
                invalid = [str(entry_id) for entry_id in unique_ids if entry_id not in found]
                if invalid:
                    logger.info(
                        "group_edit_rejected",
                        owner_id=str(owner_id),
                        invalid_entry_ids=invalid,
                    )
                    raise InvalidGroupEntriesError(invalid)

                now = self._clock.now()
                updated: list[TimeLogEntry] = []
                for entry_id in unique_ids:
                    entry = found[entry_id]
                    entry.title = title
                    entry.tags = list(normalized_tags)
                    entry.updated_at = now
                    updated.append(await uow.entries.update(entry))
                await uow.commit()

        logger.info("entries_group_updated", owner_id=str(owner_id), count=len(updated))
        return updated

    async def delete(self, entry_id: UUID, owner_id: UUID) -> None:
        """Hard-delete an entry. Deleting the active entry leaves none active."""
        async with self._locks.hold(owner_id):
            async with self._uow_factory() as uow:
                entry = await uow.entries.get(entry_id)
                if entry is None or entry.owner_id != owner_id:
                    raise EntryNotFoundError(str(entry_id))
                await uow.entries.delete(entry_id)
                await uow.commit()

        logger.info("entry_deleted", owner_id=str(owner_id), entry_id=str(entry_id))

    # --- Queries (lock-free) ---

    def now(self) -> datetime:
        """Current time as seen by this service; used to measure active entries."""
        return self._clock.now()

    async def get_active(self, owner_id: UUID) -> TimeLogEntry | None:
        async with self._uow_factory() as uow:
            return await uow.entries.get_active(owner_id)  # type: ignore[no-any-return]

    async def get_entry(self, entry_id: UUID, owner_id: UUID) -> TimeLogEntry:
        async with self._uow_factory() as uow:
            entry = await uow.entries.get(entry_id)
            if entry is None or entry.owner_id != owner_id:
                raise EntryNotFoundError(str(entry_id))
            return entry

    async def list_entries(
        self,
        owner_id: UUID,
        start_from: datetime,
        start_to: datetime,
        page: int = 1,
        page_size: int = 100,
    ) -> EntryPage:
        """One page of entries started in ``[start_from, start_to)``, newest first."""
        start_from, start_to = self._check_range(start_from, start_to)
        if page_size > self._max_page_size:
            raise PageSizeExceededError(page_size, self._max_page_size)
        if page < 1 or page_size < 1:
            raise ValidationError(
                "Page and page size must be positive",
                details={"page": page, "page_size": page_size},
            )

        async with self._uow_factory() as uow:
            entries = await uow.entries.get_in_range(
                owner_id, start_from, start_to, page_size, (page - 1) * page_size
            )
            total = await uow.entries.count_in_range(owner_id, start_from, start_to)
        return EntryPage(entries=entries, total=total, page=page, page_size=page_size)

    async def search_titles(
        self, owner_id: UUID, query: str, limit: int = 10
    ) -> list[TitleSuggestion]:
        """Distinct titles containing every word of ``query``, latest first."""
        tokens = query.split()
        async with self._uow_factory() as uow:
            return await uow.entries.search_titles(owner_id, tokens, limit)  # type: ignore[no-any-return]

    async def day_groups(
        self,
        owner_id: UUID,
        start_from: datetime,
        start_to: datetime,
        timezone_name: str = "UTC",
    ) -> DayGroupsView:
        """Entries started in ``[start_from, start_to)`` grouped by local day."""
        tz = resolve_timezone(timezone_name)
        start_from, start_to = self._check_range(start_from, start_to)
        return await self._summarize(owner_id, start_from, start_to, tz)

    async def week(
        self,
        owner_id: UUID,
        reference: date | None = None,
        timezone_name: str = "UTC",
        week_start: WeekDay = WeekDay.MONDAY,
    ) -> DayGroupsView:
        """The local week containing ``reference`` (default: today)."""
        tz = resolve_timezone(timezone_name)
        if reference is None:
            reference = self._clock.now().astimezone(tz).date()
        start_from, start_to = aggregation.week_bounds(reference, tz, week_start)
        return await self._summarize(owner_id, start_from, start_to, tz)

    async def _summarize(
        self, owner_id: UUID, start_from: datetime, start_to: datetime, tz: ZoneInfo
    ) -> DayGroupsView:
        async with self._uow_factory() as uow:
            entries = await uow.entries.get_all_in_range(owner_id, start_from, start_to)
        return aggregation.summarize_range(
            entries, self._clock.now(), tz, start_from, start_to
        )

    # --- Helpers ---

    @staticmethod
    def _clean_title(title: str) -> str:
        cleaned = title.strip()
        if not cleaned:
            raise ValidationError("Title must not be blank")
        if len(cleaned) > MAX_TITLE_LENGTH:
            raise ValidationError(
                f"Title must be at most {MAX_TITLE_LENGTH} characters",
                details={"max_length": MAX_TITLE_LENGTH},
            )
        return cleaned

    @staticmethod
    def _check_range(start_from: datetime, start_to: datetime) -> tuple[datetime, datetime]:
        start_from, start_to = as_utc(start_from), as_utc(start_to)
        if start_from >= start_to:
            raise InvalidTimeRangeError(start_from.isoformat(), start_to.isoformat())
        return start_from, start_to

    def _publish(
        self, owner_id: UUID, event_type: EntryEventType, entry: TimeLogEntry
    ) -> None:
        if self._notifier is None:
            return
        self._notifier.publish(
            owner_id, EntryEvent(type=event_type, entry_id=entry.id, title=entry.title)
        )
