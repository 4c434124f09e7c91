"""Unit tests for OwnerLockRegistry."""

import asyncio
from uuid import UUID

import pytest

from core.owner_locks import OwnerLockRegistry


class TestOwnerLockRegistry:
    @pytest.mark.asyncio
    async def test_serializes_same_owner(self, user_id: UUID):
        locks = OwnerLockRegistry()
        inside = 0
        max_inside = 0

        async def writer() -> None:
            nonlocal inside, max_inside
            async with locks.hold(user_id):
                inside += 1
                max_inside = max(max_inside, inside)
                await asyncio.sleep(0)
                inside -= 1

        await asyncio.gather(*(writer() for _ in range(5)))

        assert max_inside == 1

    @pytest.mark.asyncio
    async def test_different_owners_run_concurrently(self, user_id: UUID, other_user_id: UUID):
        locks = OwnerLockRegistry()
        both_held = asyncio.Event()
        first_in = asyncio.Event()

        async def first() -> None:
            async with locks.hold(user_id):
                first_in.set()
                await asyncio.wait_for(both_held.wait(), timeout=1)

        async def second() -> None:
            await first_in.wait()
            async with locks.hold(other_user_id):
                both_held.set()

        await asyncio.gather(first(), second())

        assert both_held.is_set()

    @pytest.mark.asyncio
    async def test_forgets_idle_owners(self, user_id: UUID):
        locks = OwnerLockRegistry()

        async with locks.hold(user_id):
            assert len(locks) == 1

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_releases_on_error(self, user_id: UUID):
        locks = OwnerLockRegistry()

        with pytest.raises(RuntimeError):
            async with locks.hold(user_id):
                raise RuntimeError("boom")

        assert len(locks) == 0
        async with locks.hold(user_id):
            pass
