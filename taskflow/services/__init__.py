"""Service layer for task business rules and persistence.

This module provides the service layer that coordinates between
business models and the record store.
"""

from .task_service import TaskChangeListener, TaskService

__all__ = ["TaskChangeListener", "TaskService"]
