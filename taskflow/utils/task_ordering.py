"""Task list filtering and ordering.

The list view's rules: filter by type, then bucket, then status, then
search text; order by status rank and, where both tasks have one, due date.
"""

from collections.abc import Iterable
from functools import cmp_to_key

from ..schemas.models import (
    STATUS_RANK,
    TaskBucket,
    TaskCore,
    TaskFilter,
    TaskStatus,
)


class TaskOrdering:
    """Utility class for list filtering and ordering."""

    @staticmethod
    def status_rank(task: TaskCore) -> int:
        """Numeric display priority of the task's status."""
        return STATUS_RANK[task.status]

    @staticmethod
    def compare(a: TaskCore, b: TaskCore) -> int:
        """Pairwise list order.

        Status rank decides first. Due dates only break ties when both tasks
        have one; otherwise the pair compares equal and keeps read order.
        """
        rank_diff = TaskOrdering.status_rank(a) - TaskOrdering.status_rank(b)
        if rank_diff != 0:
            return rank_diff
        if a.due_date is not None and b.due_date is not None:
            delta = (a.due_date - b.due_date).total_seconds()
            return (delta > 0) - (delta < 0)
        return 0

    @staticmethod
    def sort(tasks: Iterable[TaskCore]) -> list[TaskCore]:
        """Stable sort with ``compare``."""
        return sorted(tasks, key=cmp_to_key(TaskOrdering.compare))

    @staticmethod
    def matches_filter(task: TaskCore, task_filter: TaskFilter) -> bool:
        """Whether a task passes every active filter."""
        if task_filter.type is not None and task.type != task_filter.type:
            return False

        if task_filter.bucket is TaskBucket.ACTIVE and task.is_completed:
            return False
        if task_filter.bucket is TaskBucket.COMPLETED and not task.is_completed:
            return False

        if task_filter.status is not None and task.status != task_filter.status:
            return False

        if task_filter.search and not task.matches(task_filter.search):
            return False

        return True

    @staticmethod
    def apply(
        tasks: Iterable[TaskCore], task_filter: TaskFilter | None = None
    ) -> list[TaskCore]:
        """Filter then sort, as the task list shows them."""
        task_filter = task_filter or TaskFilter()
        return TaskOrdering.sort(
            task for task in tasks if TaskOrdering.matches_filter(task, task_filter)
        )


def all_completed(tasks: Iterable[TaskCore]) -> bool:
    """Whether every task is completed (true for none)."""
    return all(task.status == TaskStatus.COMPLETED for task in tasks)
