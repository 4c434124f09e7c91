"""Pydantic schemas for Time Log Entry API."""

from datetime import date, datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.day_group import DayGroup, DayGroupsView, EntryGroup, EntryView
from domain.entities.time_log_entry import MAX_TITLE_LENGTH, TimeLogEntry, TitleSuggestion

MAX_TAG_LENGTH = 255

TagName = Annotated[str, Field(max_length=MAX_TAG_LENGTH)]


# --- Requests ---


class EntryStart(BaseModel):
    """Schema for starting a new entry."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    tags: list[TagName] = Field(default_factory=list)
    metadata: list[str] = Field(default_factory=list)


class EntryUpdate(BaseModel):
    """Schema for editing an entry (all fields optional)."""

    title: str | None = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    start_time: datetime | None = None
    end_time: datetime | None = None
    tags: list[TagName] | None = None


class EntryBulkUpdate(BaseModel):
    """Schema for applying one title and tag set to several entries."""

    entry_ids: list[UUID] = Field(..., min_length=1, max_length=500)
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    tags: list[TagName] = Field(default_factory=list)


# --- Entries ---


class TimeLogEntryResponse(BaseModel):
    """Schema for a single entry.

    ``duration_seconds`` is measured at response time, so it keeps growing
    for an active entry.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "title": "Bug triage",
                "start_time": "2024-01-15T09:00:00Z",
                "end_time": None,
                "tags": ["ops"],
                "metadata": [],
                "is_active": True,
                "duration_seconds": 1830.0,
                "created_at": "2024-01-15T09:00:00Z",
                "updated_at": "2024-01-15T09:00:00Z",
            }
        },
    )

    id: UUID
    title: str
    start_time: datetime
    end_time: datetime | None
    tags: list[str]
    metadata: list[str]
    is_active: bool
    duration_seconds: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entry: TimeLogEntry, now: datetime) -> "TimeLogEntryResponse":
        return cls(
            id=entry.id,
            title=entry.title,
            start_time=entry.start_time,
            end_time=entry.end_time,
            tags=list(entry.tags),
            metadata=list(entry.metadata),
            is_active=entry.is_active,
            duration_seconds=entry.duration(now).total_seconds(),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class PageMeta(BaseModel):
    """Pagination metadata."""

    total: int
    page: int
    page_size: int


class EntryListResponse(BaseModel):
    """Schema for a page of entries."""

    data: list[TimeLogEntryResponse]
    meta: PageMeta


class EntryDetailResponse(BaseModel):
    """Schema for single entry response."""

    data: TimeLogEntryResponse


class ActiveEntryResponse(BaseModel):
    """Schema for the active entry; ``data`` is null when nothing is running."""

    data: TimeLogEntryResponse | None


class StopResultResponse(BaseModel):
    """Outcome of a stop request."""

    stopped: bool
    entry: TimeLogEntryResponse | None = None


class StopResponse(BaseModel):
    """Schema for stop response."""

    data: StopResultResponse


class EntryBulkUpdateResponse(BaseModel):
    """Schema for group edit response."""

    data: list[TimeLogEntryResponse]


# --- Autocomplete ---


class TitleSuggestionResponse(BaseModel):
    """A previously used title with the tags it was last used with."""

    model_config = ConfigDict(from_attributes=True)

    title: str
    tags: list[str]
    last_started_at: datetime


class AutocompleteResponse(BaseModel):
    """Schema for autocomplete response."""

    data: list[TitleSuggestionResponse]

    @classmethod
    def from_suggestions(cls, suggestions: list[TitleSuggestion]) -> "AutocompleteResponse":
        return cls(data=[TitleSuggestionResponse.model_validate(s) for s in suggestions])


# --- Day groups ---


class EntryViewResponse(BaseModel):
    """One day's slice of an entry."""

    entry_id: UUID
    title: str
    tags: list[str]
    start_time: datetime
    end_time: datetime | None
    is_active: bool
    is_split: bool
    duration_seconds: float
    overlapping_entry_title: str | None = None

    @classmethod
    def from_view(cls, view: EntryView) -> "EntryViewResponse":
        return cls(
            entry_id=view.entry_id,
            title=view.title,
            tags=list(view.tags),
            start_time=view.start_time,
            end_time=view.end_time,
            is_active=view.is_active,
            is_split=view.is_split,
            duration_seconds=view.duration.total_seconds(),
            overlapping_entry_title=view.overlapping_entry_title,
        )


class EntryGroupResponse(BaseModel):
    """Slices within a day that share a title and tag set."""

    group_key: str
    title: str
    tags: list[str]
    entry_ids: list[UUID]
    start_time: datetime
    earliest_start_time: datetime
    end_time: datetime | None
    total_duration_seconds: float
    entries: list[EntryViewResponse]

    @classmethod
    def from_group(cls, group: EntryGroup) -> "EntryGroupResponse":
        return cls(
            group_key=group.group_key,
            title=group.title,
            tags=list(group.tags),
            entry_ids=list(group.entry_ids),
            start_time=group.start_time,
            earliest_start_time=group.earliest_start_time,
            end_time=group.end_time,
            total_duration_seconds=group.total_duration.total_seconds(),
            entries=[EntryViewResponse.from_view(view) for view in group.views],
        )


class DayGroupResponse(BaseModel):
    """One local calendar day."""

    date: date
    display_title: str
    total_duration_seconds: float
    entries: list[EntryViewResponse]
    groups: list[EntryGroupResponse]

    @classmethod
    def from_day(cls, day: DayGroup) -> "DayGroupResponse":
        return cls(
            date=day.day,
            display_title=day.display_title,
            total_duration_seconds=day.total_duration.total_seconds(),
            entries=[EntryViewResponse.from_view(view) for view in day.entries],
            groups=[EntryGroupResponse.from_group(group) for group in day.groups],
        )


class DayGroupsData(BaseModel):
    """Day groups for a range plus the range total."""

    range_start: datetime
    range_end: datetime
    timezone: str
    total_duration_seconds: float
    days: list[DayGroupResponse]


class DayGroupsResponse(BaseModel):
    """Schema for day-groups and week responses."""

    data: DayGroupsData

    @classmethod
    def from_view(cls, view: DayGroupsView, timezone: str) -> "DayGroupsResponse":
        return cls(
            data=DayGroupsData(
                range_start=view.range_start,
                range_end=view.range_end,
                timezone=timezone,
                total_duration_seconds=view.total_duration.total_seconds(),
                days=[DayGroupResponse.from_day(day) for day in view.days],
            )
        )
