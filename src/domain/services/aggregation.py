"""Aggregation engine: durations, day/week grouping and tag statistics.

Every function here is pure. Results depend only on the arguments
(entries, the reference ``now``, the display timezone and the week start),
so callers can recompute them as often as they like. Nothing here keeps
state or schedules refreshes; a client showing an active entry re-queries
at least once per second to keep its duration moving.

All instants are timezone-aware UTC. Local calendar days are derived with
``zoneinfo`` and every boundary is converted back to UTC before doing
arithmetic, so days that are 23 or 25 hours long (DST changes) still
conserve duration.
"""

import hashlib
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID
from zoneinfo import ZoneInfo

from domain.entities.day_group import (
    DayGroup,
    DayGroupsView,
    EntryGroup,
    EntryView,
    WeekDay,
)
from domain.entities.tag import TagStat
from domain.entities.time_log_entry import TimeLogEntry

OVERLAP_TOLERANCE = timedelta(seconds=1)

_WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
_MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def total_duration(entries: Iterable[TimeLogEntry], now: datetime) -> timedelta:
    """Sum of entry durations.

    Works on stored entries, not views, so a midnight-spanning entry is
    counted once.
    """
    return sum((entry.duration(now) for entry in entries), timedelta(0))


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    """The UTC instant at which ``day`` starts in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def split_at_midnight(entry: TimeLogEntry, now: datetime, tz: ZoneInfo) -> list[EntryView]:
    """Slice an entry into one view per local calendar day it touches.

    Each slice but the last ends exactly at the next local midnight; the next
    slice starts there. The slices' durations therefore add up to the
    entry's own duration. The stored entry is not modified.
    """
    start = entry.start_time
    end = entry.end_time if entry.end_time is not None else now
    if end < start:
        end = start

    tags = tuple(entry.tags)
    slices: list[tuple[date, datetime, datetime]] = []
    cursor = start
    day = start.astimezone(tz).date()
    while True:
        boundary = local_midnight(day + timedelta(days=1), tz)
        if boundary >= end:
            break
        if boundary > cursor:
            slices.append((day, cursor, boundary))
            cursor = boundary
        day += timedelta(days=1)
    slices.append((day, cursor, end))

    is_split = len(slices) > 1
    views: list[EntryView] = []
    for index, (slice_day, slice_start, slice_end) in enumerate(slices):
        is_last = index == len(slices) - 1
        views.append(
            EntryView(
                entry_id=entry.id,
                title=entry.title,
                tags=tags,
                start_time=slice_start,
                end_time=None if is_last and entry.is_active else slice_end,
                day=slice_day,
                duration=slice_end - slice_start,
                is_split=is_split,
            )
        )
    return views


def detect_overlaps(views: Sequence[EntryView]) -> list[EntryView]:
    """Mark stopped views that overlap another stopped view by more than a second.

    A marked view carries the title of the earliest-starting view it
    overlaps. Active views never take part. Order is preserved.
    """
    stopped = sorted(
        ((view, view.end_time) for view in views if view.end_time is not None),
        key=lambda pair: (pair[0].start_time, str(pair[0].entry_id)),
    )
    overlapping: dict[tuple[UUID, datetime], str] = {}
    for i, (current, current_end) in enumerate(stopped):
        for other, other_end in stopped[i + 1 :]:
            if other.start_time >= current_end:
                break
            if other.entry_id == current.entry_id:
                continue
            shared = min(current_end, other_end) - other.start_time
            if shared > OVERLAP_TOLERANCE:
                overlapping.setdefault((current.entry_id, current.start_time), other.title)
                overlapping.setdefault((other.entry_id, other.start_time), current.title)

    if not overlapping:
        return list(views)
    return [
        replace(view, overlapping_entry_title=overlapping[(view.entry_id, view.start_time)])
        if (view.entry_id, view.start_time) in overlapping
        else view
        for view in views
    ]


def group_key(title: str, tags: Iterable[str]) -> str:
    """Stable identifier for a title plus an unordered tag set."""
    material = "\x1f".join([title, *sorted(set(tags))])
    return hashlib.sha1(material.encode("utf-8")).hexdigest()[:16]


def _newest_first(views: Iterable[EntryView]) -> list[EntryView]:
    return sorted(views, key=lambda view: (view.start_time, str(view.entry_id)), reverse=True)


def group_by_title_and_tags(views: Sequence[EntryView]) -> list[EntryGroup]:
    """Collect views sharing a title and tag set, latest group first."""
    buckets: dict[str, list[EntryView]] = defaultdict(list)
    for view in views:
        buckets[group_key(view.title, view.tags)].append(view)

    groups: list[EntryGroup] = []
    for key, members in buckets.items():
        ordered = _newest_first(members)
        entry_ids = tuple(dict.fromkeys(view.entry_id for view in ordered))
        any_active = any(view.is_active for view in ordered)
        groups.append(
            EntryGroup(
                group_key=key,
                title=ordered[0].title,
                tags=tuple(sorted(set(ordered[0].tags))),
                entry_ids=entry_ids,
                views=tuple(ordered),
                start_time=ordered[0].start_time,
                earliest_start_time=ordered[-1].start_time,
                end_time=None
                if any_active
                else max(view.end_time for view in ordered if view.end_time is not None),
                total_duration=sum((view.duration for view in ordered), timedelta(0)),
            )
        )
    groups.sort(key=lambda group: (group.start_time, group.group_key), reverse=True)
    return groups


def day_display_title(day: date, today: date) -> str:
    """Display title for a day bucket: Today, Yesterday, or e.g. "Monday, Jan 15"."""
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{_WEEKDAY_NAMES[day.weekday()]}, {_MONTH_ABBREVIATIONS[day.month - 1]} {day.day}"


def group_by_day(
    entries: Iterable[TimeLogEntry], now: datetime, tz: ZoneInfo
) -> list[DayGroup]:
    """Bucket entry views by local calendar day, newest day first."""
    by_day: dict[date, list[EntryView]] = defaultdict(list)
    for entry in entries:
        for view in split_at_midnight(entry, now, tz):
            by_day[view.day].append(view)

    today = now.astimezone(tz).date()
    days: list[DayGroup] = []
    for day in sorted(by_day, reverse=True):
        views = _newest_first(detect_overlaps(by_day[day]))
        days.append(
            DayGroup(
                day=day,
                display_title=day_display_title(day, today),
                entries=tuple(views),
                groups=tuple(group_by_title_and_tags(views)),
                total_duration=sum((view.duration for view in views), timedelta(0)),
            )
        )
    return days


def summarize_range(
    entries: Sequence[TimeLogEntry],
    now: datetime,
    tz: ZoneInfo,
    range_start: datetime,
    range_end: datetime,
) -> DayGroupsView:
    """Day groups for entries in ``[range_start, range_end)`` plus the range total."""
    return DayGroupsView(
        range_start=range_start,
        range_end=range_end,
        days=tuple(group_by_day(entries, now, tz)),
        total_duration=total_duration(entries, now),
    )


def week_bounds(
    reference: date, tz: ZoneInfo, week_start: WeekDay = WeekDay.MONDAY
) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of the local week containing ``reference``."""
    offset = (reference.weekday() - week_start) % 7
    first_day = reference - timedelta(days=offset)
    return local_midnight(first_day, tz), local_midnight(first_day + timedelta(days=7), tz)


def compute_tag_stats(
    tag_lists: Iterable[Iterable[str]], legacy_names: set[str]
) -> list[TagStat]:
    """Count entries per tag and flag the owner's legacy tags, sorted by tag."""
    counts: Counter[str] = Counter()
    for tags in tag_lists:
        counts.update(set(tags))
    return [
        TagStat(tag=tag, count=counts[tag], is_legacy=tag in legacy_names)
        for tag in sorted(counts, key=lambda name: (name.casefold(), name))
    ]
