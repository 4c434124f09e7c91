"""Tag domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass
class LegacyTag:
    """Marks a tag name as legacy for one owner only."""

    owner_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class TagStat:
    """Read-only value object: a tag with its usage count and legacy flag."""

    tag: str
    count: int
    is_legacy: bool = False
