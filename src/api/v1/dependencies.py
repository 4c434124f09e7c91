"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from core.owner_locks import OwnerLockRegistry
from domain.services.event_notifier import EntryEventNotifier
from domain.services.tag_service import TagService
from domain.services.time_log_service import TimeLogService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_event_notifier() -> EntryEventNotifier:
    """Get the process-wide entry event notifier."""
    return EntryEventNotifier(queue_size=settings.event_queue_size)


@lru_cache
def get_owner_locks() -> OwnerLockRegistry:
    """Get the process-wide per-owner lock registry."""
    return OwnerLockRegistry()


@lru_cache
def get_time_log_service() -> TimeLogService:
    """Get TimeLog service instance."""
    return TimeLogService(
        get_uow_factory(),
        notifier=get_event_notifier(),
        locks=get_owner_locks(),
        start_retry_attempts=settings.start_retry_attempts,
        max_page_size=settings.max_page_size,
    )


@lru_cache
def get_tag_service() -> TagService:
    """Get Tag service instance."""
    return TagService(get_uow_factory())
