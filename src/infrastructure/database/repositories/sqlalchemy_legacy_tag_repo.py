"""SQLAlchemy implementation of LegacyTag repository."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.tag import LegacyTag
from infrastructure.database.models import LegacyTagModel


class SQLAlchemyLegacyTagRepository:
    """SQLAlchemy implementation of ILegacyTagRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_names_for_owner(self, owner_id: UUID) -> set[str]:
        """Get all legacy tag names for an owner."""
        stmt = select(LegacyTagModel.name).where(LegacyTagModel.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def exists(self, owner_id: UUID, name: str) -> bool:
        """Check whether a legacy marker exists."""
        stmt = select(LegacyTagModel.id).where(
            LegacyTagModel.owner_id == owner_id,
            LegacyTagModel.name == name,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def create(self, legacy_tag: LegacyTag) -> LegacyTag:
        """Create a legacy marker; a concurrent duplicate counts as success."""
        model = self._to_model(legacy_tag)
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError:
            return legacy_tag
        await self._session.refresh(model)
        return self._to_entity(model)

    async def delete(self, owner_id: UUID, name: str) -> bool:
        """Delete a legacy marker."""
        stmt = delete(LegacyTagModel).where(
            LegacyTagModel.owner_id == owner_id,
            LegacyTagModel.name == name,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    def _to_entity(self, model: LegacyTagModel) -> LegacyTag:
        """Convert ORM model to domain entity."""
        return LegacyTag(
            id=model.id,
            owner_id=model.owner_id,
            name=model.name,
            created_at=model.created_at,
        )

    def _to_model(self, entity: LegacyTag) -> LegacyTagModel:
        """Convert domain entity to ORM model."""
        return LegacyTagModel(
            id=entity.id,
            owner_id=entity.owner_id,
            name=entity.name,
            created_at=entity.created_at,
        )
