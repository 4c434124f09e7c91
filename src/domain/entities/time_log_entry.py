"""Time log entry domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

MAX_TITLE_LENGTH = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Strip, drop blanks and de-duplicate tags, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or []:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


@dataclass
class TimeLogEntry:
    """Domain entity for a time log entry.

    An entry without ``end_time`` is *active*. At most one entry per owner may
    be active at a time.
    """

    owner_id: UUID
    title: str
    start_time: datetime
    id: UUID = field(default_factory=uuid4)
    end_time: datetime | None = None
    tags: list[str] = field(default_factory=list)
    metadata: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def duration(self, now: datetime) -> timedelta:
        """Elapsed time, measured up to ``now`` while the entry is running."""
        end = self.end_time if self.end_time is not None else now
        return max(end - self.start_time, timedelta(0))

    def stop(self, at: datetime) -> None:
        """Close the entry at ``at`` (never earlier than its start)."""
        self.end_time = max(at, self.start_time)
        self.updated_at = at

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass(frozen=True, slots=True)
class EntryPage:
    """Read-only value object: one page of a range query."""

    entries: list[TimeLogEntry]
    total: int
    page: int
    page_size: int


@dataclass(frozen=True, slots=True)
class StopResult:
    """Outcome of a stop request; stopping with nothing active is not an error."""

    stopped: bool
    entry: TimeLogEntry | None = None


@dataclass(frozen=True, slots=True)
class TitleSuggestion:
    """Latest entry for a distinct title, used for autocomplete."""

    title: str
    tags: list[str]
    last_started_at: datetime
