"""Legacy tag repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.tag import LegacyTag


class ILegacyTagRepository(Protocol):
    """Repository interface for per-owner legacy tag markers."""

    async def get_names_for_owner(self, owner_id: UUID) -> set[str]:
        """Get every tag name the owner marked as legacy."""
        ...

    async def exists(self, owner_id: UUID, name: str) -> bool:
        """Check whether the owner marked ``name`` as legacy."""
        ...

    async def create(self, legacy_tag: LegacyTag) -> LegacyTag:
        """Insert a legacy marker."""
        ...

    async def delete(self, owner_id: UUID, name: str) -> bool:
        """Remove a legacy marker and return whether one existed."""
        ...
