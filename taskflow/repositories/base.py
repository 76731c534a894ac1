"""Base repository pattern with common operations.

Repositories are bound to one async session; the session's transaction is
owned by whoever created it (``RecordStore.transaction``).
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession


EntityT = TypeVar("EntityT")


class BaseRepository(Generic[EntityT], ABC):
    """Base repository with common CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @abstractmethod
    def get_entity_class(self) -> type[EntityT]:
        """Return the SQLModel entity class."""

    async def insert(self, entity: EntityT) -> int:
        """Persist a new entity and return its generated id."""
        entity.id = None
        self.session.add(entity)
        await self.session.flush()
        return entity.id

    async def get_by_id(self, entity_id: int) -> EntityT | None:
        """Get entity by ID."""
        return await self.session.get(self.get_entity_class(), entity_id)

    async def put(self, entity: EntityT) -> EntityT:
        """Replace the entity stored under ``entity.id`` (inserting if absent)."""
        merged = await self.session.merge(entity)
        await self.session.flush()
        return merged

    async def remove(self, entity_id: int) -> bool:
        """Delete entity by ID; returns whether a row was removed."""
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.flush()
        return True

    async def remove_many(self, entity_ids: list[int]) -> int:
        """Delete entities by ID in the given order; returns rows removed."""
        removed = 0
        for entity_id in entity_ids:
            if await self.remove(entity_id):
                removed += 1
        return removed

    async def list_all(self, limit: int | None = None) -> list[EntityT]:
        """Get all entities ordered by id, with optional limit."""
        entity_class = self.get_entity_class()
        statement = select(entity_class).order_by(entity_class.id)
        if limit:
            statement = statement.limit(limit)
        return list((await self.session.exec(statement)).all())

    async def find_by(self, column: str, value: Any) -> list[EntityT]:
        """Get entities whose ``column`` equals ``value``, ordered by id."""
        entity_class = self.get_entity_class()
        statement = (
            select(entity_class)
            .where(getattr(entity_class, column) == value)
            .order_by(entity_class.id)
        )
        return list((await self.session.exec(statement)).all())

    async def count(self) -> int:
        """Count total entities."""
        statement = select(func.count()).select_from(self.get_entity_class())
        return (await self.session.exec(statement)).one()

    async def exists(self, entity_id: int) -> bool:
        """Check if entity exists."""
        return await self.get_by_id(entity_id) is not None
