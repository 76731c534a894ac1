"""Repository implementations for task data access."""

from .base import BaseRepository
from .task_repository import TaskRepository


__all__ = ["BaseRepository", "TaskRepository"]
