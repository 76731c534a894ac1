"""Utility functions for task list handling."""

from .task_ordering import TaskOrdering, all_completed


__all__ = ["TaskOrdering", "all_completed"]
