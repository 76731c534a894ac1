"""Business models and enums for the task store.

Pydantic v2 models shared by the service layer, the CSV codec and the CLI.
Database entities live in ``schemas.database`` and convert to and from
``TaskCore``.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# ENUMS
# ============================================================================


class TaskStatus(StrEnum):
    """Task status; values are the labels written to CSV."""

    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    COMPLETED = "Completed"


class TaskType(StrEnum):
    """Top-level task or one-level-deep sub-task."""

    TASK = "task"
    SUB_TASK = "sub-task"


class TaskBucket(StrEnum):
    """Active/completed partition of the top-level list."""

    ACTIVE = "active"
    COMPLETED = "completed"


class ChangeKind(StrEnum):
    """Kind of committed mutation reported to subscribers."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    IMPORTED = "imported"


# Display priority for the task list: lower sorts first.
STATUS_RANK: dict[TaskStatus, int] = {
    TaskStatus.IN_PROGRESS: 0,
    TaskStatus.REVIEW: 1,
    TaskStatus.TODO: 2,
    TaskStatus.COMPLETED: 3,
}


# ============================================================================
# TIMESTAMPS
# ============================================================================


def normalize_timestamp(value: datetime) -> datetime:
    """Return ``value`` as aware UTC truncated to milliseconds.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utc_now() -> datetime:
    """Current time in UTC at millisecond precision."""
    return normalize_timestamp(datetime.now(UTC))


def format_timestamp(value: datetime) -> str:
    """Render like JavaScript's ``Date.toISOString()``.

    >>> format_timestamp(datetime(2024, 1, 10, tzinfo=UTC))
    '2024-01-10T00:00:00.000Z'
    """
    value = normalize_timestamp(value)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted) into aware UTC.

    Raises:
        ValueError: If the text is not an ISO-8601 timestamp.

    """
    return normalize_timestamp(datetime.fromisoformat(text.strip()))


# ============================================================================
# BASE MODELS
# ============================================================================


class BaseBusinessModel(BaseModel):
    """Base for business models with the shared configuration."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=False,
        from_attributes=True,
    )


# ============================================================================
# TASK MODELS
# ============================================================================


class TaskCore(BaseBusinessModel):
    """A stored task (``id`` is None until the store assigns one)."""

    id: int | None = None
    title: str
    description: str = ""
    due_date: datetime | None = None
    status: TaskStatus = TaskStatus.TODO
    type: TaskType = TaskType.TASK
    parent_id: int | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("due_date", "created_at")
    @classmethod
    def validate_timestamps(cls, v: datetime | None) -> datetime | None:
        """Store timestamps as aware UTC at millisecond precision."""
        return None if v is None else normalize_timestamp(v)

    @property
    def is_subtask(self) -> bool:
        """Whether this task is a sub-task."""
        return self.type == TaskType.SUB_TASK

    @property
    def is_completed(self) -> bool:
        """Whether this task is completed."""
        return self.status == TaskStatus.COMPLETED

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over title or description."""
        needle = query.lower()
        return needle in self.title.lower() or needle in self.description.lower()


class TaskCreate(BaseBusinessModel):
    """Input for creating a task or sub-task."""

    title: str
    description: str = ""
    due_date: datetime | None = None
    type: TaskType = TaskType.TASK
    parent_id: int | None = None

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: datetime | None) -> datetime | None:
        """Store the due date as aware UTC at millisecond precision."""
        return None if v is None else normalize_timestamp(v)

    @classmethod
    def subtask(cls, parent_id: int, title: str, **kwargs: Any) -> "TaskCreate":
        """Shortcut for a sub-task of ``parent_id``."""
        return cls(title=title, type=TaskType.SUB_TASK, parent_id=parent_id, **kwargs)


class TaskFilter(BaseBusinessModel):
    """List filters, applied in field order.

    The default is the active top-level view; ``None`` disables a filter.
    """

    type: TaskType | None = TaskType.TASK
    bucket: TaskBucket | None = TaskBucket.ACTIVE
    status: TaskStatus | None = None
    search: str | None = None


class TaskChange(BaseBusinessModel):
    """Notification sent to subscribers after a committed mutation."""

    kind: ChangeKind
    task_ids: list[int] = Field(default_factory=list)


__all__ = [
    "STATUS_RANK",
    "BaseBusinessModel",
    "ChangeKind",
    "TaskBucket",
    "TaskChange",
    "TaskCore",
    "TaskCreate",
    "TaskFilter",
    "TaskStatus",
    "TaskType",
    "format_timestamp",
    "normalize_timestamp",
    "parse_timestamp",
    "utc_now",
]
