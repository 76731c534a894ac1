"""Taskflow - hierarchical task store.

This package contains a client-resident store for tasks and their
sub-tasks, with cascading deletes, a completion rule for parents and
CSV backups.

Core Components:
- database: RecordStore, the transactional SQLite record store
- services: TaskService, the business rules on top of the store
- schemas: business models, the SQLModel entity and the CSV codec
- cli: Typer command line (``taskflow``)
"""

from .database import RecordStore
from .exceptions import (
    ConstraintViolationError,
    CsvFormatError,
    StorageError,
    StorageUnavailableError,
    TaskflowError,
    TaskNotFoundError,
    TaskValidationError,
)
from .schemas import (
    TaskBucket,
    TaskChange,
    TaskCore,
    TaskCreate,
    TaskFilter,
    TaskStatus,
    TaskType,
)
from .services import TaskService


__version__ = "1.0.0"

__all__ = [
    "ConstraintViolationError",
    "CsvFormatError",
    "RecordStore",
    "StorageError",
    "StorageUnavailableError",
    "TaskBucket",
    "TaskChange",
    "TaskCore",
    "TaskCreate",
    "TaskFilter",
    "TaskNotFoundError",
    "TaskService",
    "TaskStatus",
    "TaskType",
    "TaskValidationError",
    "TaskflowError",
]
