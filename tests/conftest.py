"""Pytest configuration and fixtures for taskflow tests."""

from datetime import UTC, datetime

import pytest
import pytest_asyncio

from taskflow.config import get_settings
from taskflow.database import RecordStore
from taskflow.schemas.models import TaskCore, TaskCreate, TaskStatus, TaskType
from taskflow.schemas.transformations import TaskCsvCodec
from taskflow.services import TaskService


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reset cached settings so environment patches take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh SQLite file per test."""
    return tmp_path / "tasks.sqlite3"


@pytest_asyncio.fixture
async def record_store(db_path):
    """Opened record store on a temporary database file."""
    store = RecordStore(db_path)
    await store.open()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def task_service(record_store):
    """Task service on the temporary record store."""
    return TaskService(record_store, TaskCsvCodec())


@pytest.fixture
def sample_task_data():
    """Sample task data for model and service tests."""
    return {
        "title": "Write quarterly report",
        "description": "Collect numbers from finance, draft summary",
        "due_date": datetime(2024, 1, 10, tzinfo=UTC),
    }


@pytest.fixture
def sample_task_core(sample_task_data):
    """Sample stored TaskCore instance."""
    return TaskCore(
        id=1,
        status=TaskStatus.TODO,
        type=TaskType.TASK,
        created_at=datetime(2024, 1, 1, 9, 30, tzinfo=UTC),
        **sample_task_data,
    )


@pytest.fixture
def sample_task_create(sample_task_data):
    """Sample TaskCreate input."""
    return TaskCreate(**sample_task_data)
