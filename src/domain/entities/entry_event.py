"""Change-feed events for time log entries."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any
from uuid import UUID


class EntryEventType(StrEnum):
    """Lifecycle transitions pushed to connected clients."""

    ENTRY_STARTED = "ENTRY_STARTED"
    ENTRY_STOPPED = "ENTRY_STOPPED"


@dataclass(frozen=True, slots=True)
class EntryEvent:
    """A single start/stop notification for one owner's clients."""

    type: EntryEventType
    entry_id: UUID
    title: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "entry_id": str(self.entry_id),
            "title": self.title,
        }
