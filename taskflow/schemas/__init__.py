"""Schema package for the task store.

This package provides:
- Business models and enums (``models``)
- The SQLModel database entity (``database``)
- The CSV backup codec (``transformations``)

Quick usage:
    from taskflow.schemas import TaskCore, TaskCreate, TaskStatus
    from taskflow.services import TaskService
"""

from .database import Task, TaskIndex, UTCDateTime
from .models import (
    STATUS_RANK,
    BaseBusinessModel,
    ChangeKind,
    TaskBucket,
    TaskChange,
    TaskCore,
    TaskCreate,
    TaskFilter,
    TaskStatus,
    TaskType,
    format_timestamp,
    normalize_timestamp,
    parse_timestamp,
    utc_now,
)
from .transformations import CSV_HEADER, CsvTaskRow, TaskCsvCodec


__all__ = [
    "CSV_HEADER",
    "STATUS_RANK",
    "BaseBusinessModel",
    "ChangeKind",
    "CsvTaskRow",
    "Task",
    "TaskBucket",
    "TaskChange",
    "TaskCore",
    "TaskCreate",
    "TaskCsvCodec",
    "TaskFilter",
    "TaskIndex",
    "TaskStatus",
    "TaskType",
    "UTCDateTime",
    "format_timestamp",
    "normalize_timestamp",
    "parse_timestamp",
    "utc_now",
]
