"""Derived, read-only views produced by the aggregation engine."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import IntEnum
from uuid import UUID


class WeekDay(IntEnum):
    """Days of the week, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, name: str) -> "WeekDay":
        """Look up a day by its name, case-insensitively."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown week day: {name}") from None


@dataclass(frozen=True, slots=True)
class EntryView:
    """A slice of a stored entry attributed to a single local calendar day.

    Entries that cross local midnight produce one view per day they touch.
    ``end_time`` is ``None`` only on the last slice of an active entry.
    """

    entry_id: UUID
    title: str
    tags: tuple[str, ...]
    start_time: datetime
    end_time: datetime | None
    day: date
    duration: timedelta
    is_split: bool = False
    overlapping_entry_title: str | None = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True, slots=True)
class EntryGroup:
    """Views within one day that share a title and tag set."""

    group_key: str
    title: str
    tags: tuple[str, ...]
    entry_ids: tuple[UUID, ...]
    views: tuple[EntryView, ...]
    start_time: datetime
    earliest_start_time: datetime
    end_time: datetime | None
    total_duration: timedelta


@dataclass(frozen=True, slots=True)
class DayGroup:
    """One local calendar day of entry views with its total duration."""

    day: date
    display_title: str
    entries: tuple[EntryView, ...]
    groups: tuple[EntryGroup, ...]
    total_duration: timedelta


@dataclass(frozen=True, slots=True)
class DayGroupsView:
    """Day groups for a range plus the range total (counted per entry, not per view)."""

    range_start: datetime
    range_end: datetime
    days: tuple[DayGroup, ...]
    total_duration: timedelta
