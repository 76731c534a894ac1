"""Task repository with indexed lookups.

Provides the record-level operations the task service builds on: insert,
full replace, removal and lookups through the ``tasks`` secondary indexes.
"""

from typing import Any

from sqlmodel import select

from ..schemas.database import Task, TaskIndex
from ..schemas.models import TaskStatus, TaskType
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Repository for task records."""

    def get_entity_class(self) -> type[Task]:
        """Return the database entity class for this repository."""
        return Task

    async def get_by_index(self, index: TaskIndex | str, value: Any) -> list[Task]:
        """Get tasks whose indexed field equals ``value``.

        Raises:
            ValueError: If ``index`` is not one of the table's indexes or the
                value does not fit the indexed column.

        """
        index = TaskIndex(index)
        if index is TaskIndex.PARENT_ID:
            value = None if value is None else int(value)
        elif index is TaskIndex.TYPE:
            value = TaskType(value)
        else:
            value = TaskStatus(value)

        if value is None:
            statement = (
                select(Task).where(Task.parent_id.is_(None)).order_by(Task.id)
            )
            return list((await self.session.exec(statement)).all())
        return await self.find_by(index.value, value)

    async def get_subtasks(self, parent_id: int) -> list[Task]:
        """Get all sub-tasks of a task through the parent index."""
        return await self.get_by_index(TaskIndex.PARENT_ID, parent_id)

    async def get_incomplete_subtasks(self, parent_id: int) -> list[Task]:
        """Get the sub-tasks of a task that are not completed."""
        statement = (
            select(Task)
            .where(Task.parent_id == parent_id, Task.status != TaskStatus.COMPLETED)
            .order_by(Task.id)
        )
        return list((await self.session.exec(statement)).all())

