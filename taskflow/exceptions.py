"""Error taxonomy for the task store and the task service.

Every error raised by taskflow derives from ``TaskflowError`` so callers can
catch the whole family at their boundary (the CLI does).
"""


class TaskflowError(Exception):
    """Base class for all taskflow errors."""


class StorageUnavailableError(TaskflowError):
    """Raised when the persistence backend cannot be opened or is not open."""

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize with the underlying cause, if any."""
        self.cause = cause
        super().__init__(message)


class StorageError(TaskflowError):
    """Raised when a single storage operation fails and is rolled back."""

    def __init__(self, operation: str, cause: Exception | None = None):
        """Initialize with the failing operation name."""
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage operation '{operation}' failed{detail}")


class TaskNotFoundError(TaskflowError):
    """Raised when an update references a task id that does not exist."""

    def __init__(self, task_id: int):
        """Initialize with the missing task id."""
        self.task_id = task_id
        super().__init__(f"Task {task_id} does not exist")


class TaskValidationError(TaskflowError):
    """Raised when task input breaks a creation or update rule."""


class CsvFormatError(TaskValidationError):
    """Raised when a CSV document cannot be parsed into tasks."""

    def __init__(self, message: str, line_number: int | None = None):
        """Initialize with the 1-based line number of the offending row."""
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ConstraintViolationError(TaskflowError):
    """Raised when a parent task is completed while sub-tasks are still open."""

    def __init__(self, task_id: int, incomplete_subtask_ids: list[int]):
        """Initialize with the parent id and the blocking sub-task ids."""
        self.task_id = task_id
        self.incomplete_subtask_ids = incomplete_subtask_ids
        ids = ", ".join(str(i) for i in incomplete_subtask_ids)
        super().__init__(
            f"Cannot complete task {task_id} until all sub-tasks are completed "
            f"(incomplete: {ids})"
        )


__all__ = [
    "ConstraintViolationError",
    "CsvFormatError",
    "StorageError",
    "StorageUnavailableError",
    "TaskNotFoundError",
    "TaskValidationError",
    "TaskflowError",
]
