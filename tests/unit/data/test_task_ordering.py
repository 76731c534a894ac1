"""Tests for list filtering and ordering."""

from datetime import UTC, datetime

import pytest

from taskflow.schemas.models import (
    TaskBucket,
    TaskCore,
    TaskFilter,
    TaskStatus,
    TaskType,
)
from taskflow.utils import TaskOrdering, all_completed


def make_task(task_id, status, due=None, title=None, **kwargs):
    """Build a stored task for ordering tests."""
    return TaskCore(
        id=task_id,
        title=title or f"Task {task_id}",
        status=status,
        due_date=due,
        **kwargs,
    )


@pytest.fixture
def mixed_tasks():
    """A, B and C from the list view example plus a completed task."""
    return [
        make_task(1, TaskStatus.TODO, datetime(2024, 1, 10, tzinfo=UTC), title="A"),
        make_task(
            2, TaskStatus.IN_PROGRESS, datetime(2024, 1, 5, tzinfo=UTC), title="B"
        ),
        make_task(3, TaskStatus.REVIEW, title="C"),
        make_task(4, TaskStatus.COMPLETED, title="D"),
    ]


class TestCompare:
    """Test the pairwise comparator."""

    def test_status_rank_decides_first(self):
        """Test In Progress sorts before Todo regardless of due date."""
        late = make_task(1, TaskStatus.IN_PROGRESS, datetime(2030, 1, 1, tzinfo=UTC))
        early = make_task(2, TaskStatus.TODO, datetime(2020, 1, 1, tzinfo=UTC))
        assert TaskOrdering.compare(late, early) < 0

    def test_due_date_breaks_ties(self):
        """Test earlier due dates sort first within one status."""
        first = make_task(1, TaskStatus.TODO, datetime(2024, 1, 1, tzinfo=UTC))
        second = make_task(2, TaskStatus.TODO, datetime(2024, 1, 2, tzinfo=UTC))
        assert TaskOrdering.compare(first, second) < 0
        assert TaskOrdering.compare(second, first) > 0

    def test_missing_due_date_compares_equal(self):
        """Test a pair where one task has no due date is a tie."""
        dated = make_task(1, TaskStatus.TODO, datetime(2024, 1, 1, tzinfo=UTC))
        undated = make_task(2, TaskStatus.TODO)
        assert TaskOrdering.compare(dated, undated) == 0
        assert TaskOrdering.compare(undated, dated) == 0


class TestApply:
    """Test filtering and sorting together."""

    def test_active_list_order(self, mixed_tasks):
        """Test the active list is B, C, A."""
        result = TaskOrdering.apply(mixed_tasks, TaskFilter(bucket=TaskBucket.ACTIVE))
        assert [task.title for task in result] == ["B", "C", "A"]

    def test_completed_bucket(self, mixed_tasks):
        """Test the completed bucket holds only completed tasks."""
        result = TaskOrdering.apply(
            mixed_tasks, TaskFilter(bucket=TaskBucket.COMPLETED)
        )
        assert [task.title for task in result] == ["D"]

    def test_default_is_active_bucket(self, mixed_tasks):
        """Test the default filter leaves completed tasks out."""
        result = TaskOrdering.apply(mixed_tasks)
        assert [task.title for task in result] == ["B", "C", "A"]

    def test_no_bucket_keeps_everything(self, mixed_tasks):
        """Test without a bucket completed tasks sort last."""
        result = TaskOrdering.apply(mixed_tasks, TaskFilter(bucket=None))
        assert [task.title for task in result] == ["B", "C", "A", "D"]

    def test_subtasks_hidden_by_default(self, mixed_tasks):
        """Test the default filter drops sub-tasks."""
        subtask = make_task(
            5, TaskStatus.IN_PROGRESS, type=TaskType.SUB_TASK, parent_id=1
        )
        tasks = [*mixed_tasks, subtask]

        assert subtask not in TaskOrdering.apply(tasks)
        assert subtask in TaskOrdering.apply(tasks, TaskFilter(type=None))

    def test_status_filter(self, mixed_tasks):
        """Test filtering on one status."""
        result = TaskOrdering.apply(mixed_tasks, TaskFilter(status=TaskStatus.REVIEW))
        assert [task.title for task in result] == ["C"]

    def test_search_filter(self):
        """Test search matches title or description, ignoring case."""
        tasks = [
            make_task(1, TaskStatus.TODO, title="Groceries"),
            make_task(
                2, TaskStatus.TODO, title="Taxes", description="File GROCERY receipts"
            ),
            make_task(3, TaskStatus.TODO, title="Gym"),
        ]
        result = TaskOrdering.apply(tasks, TaskFilter(search="grocer"))
        assert [task.id for task in result] == [1, 2]

    def test_sort_is_stable_for_ties(self):
        """Test tied tasks keep their input order."""
        tasks = [make_task(i, TaskStatus.TODO) for i in (3, 1, 2)]
        assert [task.id for task in TaskOrdering.sort(tasks)] == [3, 1, 2]


class TestAllCompleted:
    """Test the completion helper."""

    def test_empty_is_completed(self):
        """Test no tasks counts as all completed."""
        assert all_completed([])

    def test_mixed(self):
        """Test one open task makes the set incomplete."""
        assert all_completed([make_task(1, TaskStatus.COMPLETED)])
        assert not all_completed(
            [make_task(1, TaskStatus.COMPLETED), make_task(2, TaskStatus.REVIEW)]
        )
