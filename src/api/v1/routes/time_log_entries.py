"""Time log entry API routes."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_time_log_service
from api.v1.schemas.time_log_entry import (
    ActiveEntryResponse,
    AutocompleteResponse,
    DayGroupsResponse,
    EntryBulkUpdate,
    EntryBulkUpdateResponse,
    EntryDetailResponse,
    EntryListResponse,
    EntryStart,
    EntryUpdate,
    PageMeta,
    StopResponse,
    StopResultResponse,
    TimeLogEntryResponse,
)
from core.config import settings
from core.exceptions import ValidationError
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.day_group import WeekDay
from domain.services.time_log_service import TimeLogService

router = APIRouter(prefix="/time-log-entries", tags=["time-log-entries"])


@router.get(
    "",
    response_model=EntryListResponse,
    summary="List entries in a time range",
    responses={
        200: {"description": "One page of entries, newest first"},
        400: {"description": "Invalid range or page size above the maximum"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_entries(
    request: Request,
    user: CurrentUser,
    start_time: datetime = Query(..., description="Inclusive lower bound on start time"),
    end_time: datetime = Query(..., description="Exclusive upper bound on start time"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1),
    service: TimeLogService = Depends(get_time_log_service),
) -> EntryListResponse:
    """
    List entries whose start time falls in `[start_time, end_time)`.

    Page sizes above the configured maximum are rejected with
    `PAGE_SIZE_EXCEEDED`, never silently clamped.
    """
    result = await service.list_entries(user.id, start_time, end_time, page, page_size)
    now = service.now()
    return EntryListResponse(
        data=[TimeLogEntryResponse.from_entity(entry, now) for entry in result.entries],
        meta=PageMeta(total=result.total, page=result.page, page_size=result.page_size),
    )


@router.get(
    "/active",
    response_model=ActiveEntryResponse,
    summary="Get the active entry",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_active_entry(
    request: Request,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> ActiveEntryResponse:
    """Get the running entry, or `null` when nothing is running."""
    entry = await service.get_active(user.id)
    if entry is None:
        return ActiveEntryResponse(data=None)
    return ActiveEntryResponse(data=TimeLogEntryResponse.from_entity(entry, service.now()))


@router.get(
    "/autocomplete",
    response_model=AutocompleteResponse,
    summary="Suggest previously used titles",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def autocomplete_titles(
    request: Request,
    user: CurrentUser,
    query: str = Query("", max_length=1000, description="Words the title must contain"),
    limit: int = Query(10, ge=1, le=50),
    service: TimeLogService = Depends(get_time_log_service),
) -> AutocompleteResponse:
    """
    Suggest distinct titles containing every word of `query` (case-insensitive).

    Each suggestion carries the tags of its most recent entry. An empty query
    returns the most recently used titles.
    """
    suggestions = await service.search_titles(user.id, query, limit)
    return AutocompleteResponse.from_suggestions(suggestions)


@router.get(
    "/day-groups",
    response_model=DayGroupsResponse,
    summary="Entries grouped by local day",
    responses={
        400: {"description": "Invalid range or unknown timezone"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_day_groups(
    request: Request,
    user: CurrentUser,
    start_time: datetime = Query(..., description="Inclusive lower bound on start time"),
    end_time: datetime = Query(..., description="Exclusive upper bound on start time"),
    timezone: str = Query(settings.default_timezone, description="IANA timezone name"),
    service: TimeLogService = Depends(get_time_log_service),
) -> DayGroupsResponse:
    """
    Group entries started in `[start_time, end_time)` by local calendar day.

    Entries crossing local midnight are split into one slice per day. Day
    totals sum slices; the range total sums whole entries. Active entries are
    measured up to now, so clients showing one should refresh every second.
    """
    view = await service.day_groups(user.id, start_time, end_time, timezone)
    return DayGroupsResponse.from_view(view, timezone)


@router.get(
    "/week",
    response_model=DayGroupsResponse,
    summary="Entries of one week grouped by local day",
    responses={
        400: {"description": "Unknown timezone or week start"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_week(
    request: Request,
    user: CurrentUser,
    reference_date: date | None = Query(
        None, alias="date", description="Any day in the week; defaults to today"
    ),
    timezone: str = Query(settings.default_timezone, description="IANA timezone name"),
    week_start: str = Query(settings.default_week_start, description="e.g. MONDAY or SUNDAY"),
    service: TimeLogService = Depends(get_time_log_service),
) -> DayGroupsResponse:
    """Day groups for the local week containing `date`, with the weekly total."""
    try:
        first_day = WeekDay.parse(week_start)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"week_start": week_start}) from exc
    view = await service.week(user.id, reference_date, timezone, first_day)
    return DayGroupsResponse.from_view(view, timezone)


@router.post(
    "/start",
    response_model=EntryDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start an entry",
    responses={
        201: {"description": "Entry started; the previous active entry, if any, was stopped"},
        422: {"description": "Validation error"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def start_entry(
    request: Request,
    body: EntryStart,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> EntryDetailResponse:
    """
    Start a new active entry.

    A running entry is stopped at the same instant, in the same transaction.
    """
    entry = await service.start(user.id, body.title, body.tags, body.metadata)
    return EntryDetailResponse(data=TimeLogEntryResponse.from_entity(entry, service.now()))


@router.post(
    "/stop",
    response_model=StopResponse,
    summary="Stop the active entry",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def stop_entry(
    request: Request,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> StopResponse:
    """Stop the running entry. Returns `stopped: false` when nothing was running."""
    result = await service.stop(user.id)
    entry = (
        TimeLogEntryResponse.from_entity(result.entry, service.now())
        if result.entry is not None
        else None
    )
    return StopResponse(data=StopResultResponse(stopped=result.stopped, entry=entry))


@router.put(
    "/bulk-update",
    response_model=EntryBulkUpdateResponse,
    summary="Rename and retag several entries",
    responses={
        400: {"description": "Some entries are missing or not owned; nothing was changed"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def bulk_update_entries(
    request: Request,
    body: EntryBulkUpdate,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> EntryBulkUpdateResponse:
    """Apply one title and tag set to every listed entry, all or nothing."""
    entries = await service.group_edit(user.id, body.entry_ids, body.title, body.tags)
    now = service.now()
    return EntryBulkUpdateResponse(
        data=[TimeLogEntryResponse.from_entity(entry, now) for entry in entries]
    )


@router.get(
    "/{entry_id}",
    response_model=EntryDetailResponse,
    summary="Get an entry",
    responses={
        404: {"description": "Entry not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_entry(
    request: Request,
    entry_id: UUID,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> EntryDetailResponse:
    """Get one of the caller's entries."""
    entry = await service.get_entry(entry_id, user.id)
    return EntryDetailResponse(data=TimeLogEntryResponse.from_entity(entry, service.now()))


@router.post(
    "/{entry_id}/continue",
    response_model=EntryDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Continue an entry",
    responses={
        201: {"description": "New entry started with the source's title and tags"},
        404: {"description": "Source entry not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def continue_entry(
    request: Request,
    entry_id: UUID,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> EntryDetailResponse:
    """Start a new entry copying the title and tags of `entry_id`."""
    entry = await service.continue_entry(user.id, entry_id)
    return EntryDetailResponse(data=TimeLogEntryResponse.from_entity(entry, service.now()))


@router.patch(
    "/{entry_id}",
    response_model=EntryDetailResponse,
    summary="Edit an entry",
    responses={
        400: {"description": "Invalid times"},
        404: {"description": "Entry not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_entry(
    request: Request,
    entry_id: UUID,
    body: EntryUpdate,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> EntryDetailResponse:
    """
    Edit any subset of title, start time, end time and tags.

    Times may not be in the future and the end may not precede the start.
    An active entry cannot be given an end time; stop it instead.
    """
    entry = await service.edit(
        entry_id,
        user.id,
        title=body.title,
        start_time=body.start_time,
        end_time=body.end_time,
        tags=body.tags,
    )
    return EntryDetailResponse(data=TimeLogEntryResponse.from_entity(entry, service.now()))


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an entry",
    responses={
        204: {"description": "Entry deleted"},
        404: {"description": "Entry not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def delete_entry(
    request: Request,
    entry_id: UUID,
    user: CurrentUser,
    service: TimeLogService = Depends(get_time_log_service),
) -> None:
    """Delete an entry permanently. Deleting the active entry leaves none running."""
    await service.delete(entry_id, user.id)
    return None
