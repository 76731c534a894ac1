"""SQLModel database entity for tasks.

Bridges the ``TaskCore`` business model with the SQLite ``tasks`` table.
"""

from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import Column, DateTime, Index
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

from .models import TaskCore, TaskStatus, TaskType, normalize_timestamp, utc_now


class UTCDateTime(TypeDecorator):
    """DateTime column that stores naive UTC and loads aware UTC.

    SQLite has no timezone support, so the offset is normalized on write.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return normalize_timestamp(value).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class TaskIndex(StrEnum):
    """Secondary indexes on the ``tasks`` table (values are column names)."""

    PARENT_ID = "parent_id"
    TYPE = "type"
    STATUS = "status"

    @property
    def index_name(self) -> str:
        """SQL name of the index."""
        return f"ix_tasks_{self.value}"


class Task(SQLModel, table=True):
    """SQLModel task table.

    ``sqlite_autoincrement`` keeps ids monotonic: SQLite never hands out an id
    again, even after the highest row is deleted.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index(TaskIndex.PARENT_ID.index_name, TaskIndex.PARENT_ID.value),
        Index(TaskIndex.TYPE.index_name, TaskIndex.TYPE.value),
        Index(TaskIndex.STATUS.index_name, TaskIndex.STATUS.value),
        {"sqlite_autoincrement": True},
    )

    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str = Field(default="")
    due_date: datetime | None = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )
    status: TaskStatus = TaskStatus.TODO
    type: TaskType = TaskType.TASK
    parent_id: int | None = None
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime(), nullable=False)
    )

    def to_core_model(self) -> TaskCore:
        """Convert to TaskCore business model."""
        return TaskCore.model_validate(self.model_dump())

    @classmethod
    def from_core_model(cls, core_model: TaskCore) -> "Task":
        """Create from TaskCore business model."""
        return cls.model_validate(core_model.model_dump())


__all__ = ["Task", "TaskIndex", "UTCDateTime"]
