"""SQLAlchemy implementation of TimeLogEntry repository."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import Select, and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ActiveEntryConflictError
from domain.entities.time_log_entry import TimeLogEntry, TitleSuggestion
from infrastructure.database.models import TimeLogEntryModel


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLAlchemyTimeLogEntryRepository:
    """SQLAlchemy implementation of ITimeLogEntryRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> TimeLogEntry | None:
        """Get an entry by ID."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def get_many(self, ids: list[UUID]) -> list[TimeLogEntry]:
        """Get entries by ID, skipping IDs that don't exist."""
        if not ids:
            return []
        stmt = select(TimeLogEntryModel).where(TimeLogEntryModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_active(self, owner_id: UUID) -> TimeLogEntry | None:
        """Get the owner's active entry."""
        stmt = select(TimeLogEntryModel).where(
            TimeLogEntryModel.owner_id == owner_id,
            TimeLogEntryModel.end_time.is_(None),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_in_range(
        self,
        owner_id: UUID,
        start_from: datetime,
        start_to: datetime,
        limit: int,
        offset: int,
    ) -> list[TimeLogEntry]:
        """Get one page of entries started in the range, newest first."""
        stmt = (
            self._range_query(owner_id, start_from, start_to)
            .order_by(TimeLogEntryModel.start_time.desc(), TimeLogEntryModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def count_in_range(
        self, owner_id: UUID, start_from: datetime, start_to: datetime
    ) -> int:
        """Count entries started in the range."""
        stmt = (
            select(func.count())
            .select_from(TimeLogEntryModel)
            .where(
                TimeLogEntryModel.owner_id == owner_id,
                TimeLogEntryModel.start_time >= start_from,
                TimeLogEntryModel.start_time < start_to,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def get_all_in_range(
        self, owner_id: UUID, start_from: datetime, start_to: datetime
    ) -> list[TimeLogEntry]:
        """Get every entry started in the range, newest first."""
        stmt = self._range_query(owner_id, start_from, start_to).order_by(
            TimeLogEntryModel.start_time.desc(), TimeLogEntryModel.id
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_tag_lists(self, owner_id: UUID) -> list[list[str]]:
        """Get the tags of every entry the owner has."""
        stmt = select(TimeLogEntryModel.tags).where(TimeLogEntryModel.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return [list(tags or []) for tags in result.scalars()]

    async def search_titles(
        self, owner_id: UUID, tokens: list[str], limit: int
    ) -> list[TitleSuggestion]:
        """Distinct titles containing every token (case-insensitive), latest first."""
        conditions = [TimeLogEntryModel.owner_id == owner_id]
        for token in tokens:
            conditions.append(TimeLogEntryModel.title.icontains(token, autoescape=True))

        latest = (
            select(
                TimeLogEntryModel.title.label("title"),
                func.max(TimeLogEntryModel.start_time).label("last_started"),
            )
            .where(*conditions)
            .group_by(TimeLogEntryModel.title)
            .subquery()
        )
        stmt = (
            select(TimeLogEntryModel)
            .join(
                latest,
                and_(
                    TimeLogEntryModel.title == latest.c.title,
                    TimeLogEntryModel.start_time == latest.c.last_started,
                ),
            )
            .where(TimeLogEntryModel.owner_id == owner_id)
            .order_by(TimeLogEntryModel.start_time.desc(), TimeLogEntryModel.title)
            .limit(limit)
        )
        result = await self._session.execute(stmt)

        suggestions: dict[str, TitleSuggestion] = {}
        for model in result.scalars():
            # Two entries with the same title and start both match the join.
            if model.title not in suggestions:
                suggestions[model.title] = TitleSuggestion(
                    title=model.title,
                    tags=list(model.tags or []),
                    last_started_at=_aware(model.start_time),
                )
        return list(suggestions.values())

    async def create(self, entry: TimeLogEntry) -> TimeLogEntry:
        """Create a new entry.

        Raises:
            ActiveEntryConflictError: the owner already has an active entry.
        """
        model = self._to_model(entry)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if entry.is_active:
                raise ActiveEntryConflictError(str(entry.owner_id)) from exc
            raise
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, entry: TimeLogEntry) -> TimeLogEntry:
        """Update an existing entry."""
        model = await self._get_model(entry.id)
        if not model:
            raise ValueError(f"Time log entry {entry.id} not found")

        model.title = entry.title
        model.start_time = entry.start_time
        model.end_time = entry.end_time
        model.tags = list(entry.tags)
        model.updated_at = entry.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def stop_if_active(self, id: UUID, end_time: datetime) -> bool:
        """Set end_time on the entry only while it is still active."""
        stmt = (
            update(TimeLogEntryModel)
            .where(TimeLogEntryModel.id == id, TimeLogEntryModel.end_time.is_(None))
            .values(end_time=end_time, updated_at=end_time)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def delete(self, id: UUID) -> bool:
        """Delete an entry."""
        model = await self._get_model(id)
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _get_model(self, id: UUID) -> TimeLogEntryModel | None:
        stmt = select(TimeLogEntryModel).where(TimeLogEntryModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _range_query(
        self, owner_id: UUID, start_from: datetime, start_to: datetime
    ) -> Select[tuple[TimeLogEntryModel]]:
        return select(TimeLogEntryModel).where(
            TimeLogEntryModel.owner_id == owner_id,
            TimeLogEntryModel.start_time >= start_from,
            TimeLogEntryModel.start_time < start_to,
        )

    def _to_entity(self, model: TimeLogEntryModel) -> TimeLogEntry:
        """Convert ORM model to domain entity."""
        return TimeLogEntry(
            id=model.id,
            owner_id=model.owner_id,
            title=model.title,
            start_time=_aware(model.start_time),
            end_time=_aware(model.end_time) if model.end_time else None,
            tags=list(model.tags or []),
            metadata=list(model.metadata_ or []),
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )

    def _to_model(self, entity: TimeLogEntry) -> TimeLogEntryModel:
        """Convert domain entity to ORM model."""
        return TimeLogEntryModel(
            id=entity.id,
            owner_id=entity.owner_id,
            title=entity.title,
            start_time=entity.start_time,
            end_time=entity.end_time,
            tags=list(entity.tags),
            metadata_=list(entity.metadata),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
