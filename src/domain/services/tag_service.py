"""Tag service layer: usage statistics and per-owner legacy markers."""

from collections.abc import Callable
from uuid import UUID

import structlog

from core.exceptions import ValidationError
from domain.entities.tag import LegacyTag, TagStat
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.aggregation import compute_tag_stats

logger = structlog.get_logger()


class TagService:
    """Service layer for tag business logic.

    Tags live on entries as plain strings; the only tag state of its own is
    the legacy marker, which is scoped to a single owner.
    """

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def get_stats(self, owner_id: UUID) -> list[TagStat]:
        """Usage count of every tag on the owner's entries, sorted by tag."""
        async with self._uow_factory() as uow:
            tag_lists = await uow.entries.get_tag_lists(owner_id)
            legacy_names = await uow.legacy_tags.get_names_for_owner(owner_id)
        return compute_tag_stats(tag_lists, legacy_names)

    async def mark_legacy(self, owner_id: UUID, name: str) -> None:
        """Mark a tag as legacy. Marking it twice is a no-op."""
        name = self._clean_name(name)
        async with self._uow_factory() as uow:
            if await uow.legacy_tags.exists(owner_id, name):
                return
            await uow.legacy_tags.create(LegacyTag(owner_id=owner_id, name=name))
            await uow.commit()
        logger.info("tag_marked_legacy", owner_id=str(owner_id), tag=name)

    async def unmark_legacy(self, owner_id: UUID, name: str) -> None:
        """Clear a legacy marker. Clearing a missing marker is a no-op."""
        name = self._clean_name(name)
        async with self._uow_factory() as uow:
            removed = await uow.legacy_tags.delete(owner_id, name)
            await uow.commit()
        if removed:
            logger.info("tag_unmarked_legacy", owner_id=str(owner_id), tag=name)

    @staticmethod
    def _clean_name(name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Tag name must not be blank")
        return cleaned
