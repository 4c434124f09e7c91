"""Integration tests for the SQLAlchemy time log entry store."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import pytest

from core.exceptions import ActiveEntryConflictError
from domain.entities.time_log_entry import TimeLogEntry

T0 = datetime(2024, 1, 15, 9, tzinfo=timezone.utc)


def _entry(owner_id: Any, title: str, start: datetime, end: datetime | None = None) -> TimeLogEntry:
    return TimeLogEntry(owner_id=owner_id, title=title, start_time=start, end_time=end)


class TestActiveEntryUniqueness:
    """The store itself refuses a second active entry per owner."""

    @pytest.mark.asyncio
    async def test_rejects_second_active_entry(self, uow_factory: Any):
        owner_id = uuid4()
        async with uow_factory() as uow:
            await uow.entries.create(_entry(owner_id, "First", T0))
            await uow.commit()

        with pytest.raises(ActiveEntryConflictError):
            async with uow_factory() as uow:
                await uow.entries.create(_entry(owner_id, "Second", T0 + timedelta(minutes=5)))

        async with uow_factory() as uow:
            active = await uow.entries.get_active(owner_id)
        assert active is not None
        assert active.title == "First"

    @pytest.mark.asyncio
    async def test_stopped_entries_insert_alongside_active_one(self, uow_factory: Any):
        owner_id = uuid4()
        async with uow_factory() as uow:
            await uow.entries.create(_entry(owner_id, "Running", T0))
            await uow.entries.create(
                _entry(owner_id, "Earlier", T0 - timedelta(hours=2), T0 - timedelta(hours=1))
            )
            await uow.commit()

        async with uow_factory() as uow:
            entries = await uow.entries.get_all_in_range(
                owner_id, T0 - timedelta(days=1), T0 + timedelta(days=1)
            )
        assert [entry.title for entry in entries] == ["Running", "Earlier"]

    @pytest.mark.asyncio
    async def test_active_entries_of_different_owners(self, uow_factory: Any):
        first_owner, second_owner = uuid4(), uuid4()
        async with uow_factory() as uow:
            await uow.entries.create(_entry(first_owner, "Mine", T0))
            await uow.entries.create(_entry(second_owner, "Theirs", T0))
            await uow.commit()

        async with uow_factory() as uow:
            assert (await uow.entries.get_active(first_owner)).title == "Mine"  # type: ignore[union-attr]
            assert (await uow.entries.get_active(second_owner)).title == "Theirs"  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_stop_if_active_only_stops_once(self, uow_factory: Any):
        owner_id = uuid4()
        async with uow_factory() as uow:
            entry = await uow.entries.create(_entry(owner_id, "Running", T0))
            await uow.commit()

        async with uow_factory() as uow:
            first = await uow.entries.stop_if_active(entry.id, T0 + timedelta(hours=1))
            second = await uow.entries.stop_if_active(entry.id, T0 + timedelta(hours=2))
            await uow.commit()

        async with uow_factory() as uow:
            stored = await uow.entries.get(entry.id)
        assert (first, second) == (True, False)
        assert stored is not None
        assert stored.end_time == T0 + timedelta(hours=1)
