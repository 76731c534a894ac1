"""Record store: database initialization and transaction management.

``RecordStore`` owns one async SQLite engine. It is constructed explicitly
and opened once; every operation runs in a transaction scope that commits on
success and rolls back on any error.

Typical usage example:
    store = RecordStore("tasks.sqlite3")
    await store.open()
    task_id = await store.insert(TaskCore(title="Write report"))
    async with store.transaction("cascade") as repo:
        await repo.remove_many([...])
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from .config import MEMORY_DATABASE, DatabaseSettings, get_settings
from .exceptions import StorageError, StorageUnavailableError
from .repositories import TaskRepository
from .schemas.database import Task, TaskIndex
from .schemas.models import TaskCore


logger = logging.getLogger(__name__)


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class RecordStore:
    """Embedded transactional store for task records.

    Thread-safety:
    - one consumer at a time; writers are serialized by the task service
    """

    def __init__(
        self,
        path: str | Path = MEMORY_DATABASE,
        *,
        echo_sql: bool = False,
        busy_timeout_seconds: float = 30.0,
    ):
        """Initialize the store without touching the filesystem.

        Args:
            path: SQLite file path, or ':memory:' for a private in-memory store.
            echo_sql: Log every SQL statement.
            busy_timeout_seconds: How long SQLite waits on a locked database.

        """
        self.path: str | Path = (
            MEMORY_DATABASE if str(path) == MEMORY_DATABASE else Path(path)
        )
        self.echo_sql = echo_sql
        self.busy_timeout_seconds = busy_timeout_seconds
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._open_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: DatabaseSettings | None = None) -> "RecordStore":
        """Build a store from configuration (global settings by default)."""
        if settings is None:
            settings = get_settings().database
        return cls(
            settings.path,
            echo_sql=settings.echo_sql,
            busy_timeout_seconds=settings.busy_timeout_seconds,
        )

    @property
    def is_memory(self) -> bool:
        """Whether the store lives only in memory."""
        return self.path == MEMORY_DATABASE

    @property
    def is_open(self) -> bool:
        """Whether ``open()`` has completed."""
        return self._engine is not None

    @property
    def url(self) -> str:
        """Async SQLAlchemy URL of the database."""
        return f"sqlite+aiosqlite:///{self.path}"

    # ---- lifecycle ----

    def _create_engine(self) -> AsyncEngine:
        if self.is_memory:
            return create_async_engine(
                self.url,
                echo=self.echo_sql,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            self.url,
            echo=self.echo_sql,
            connect_args={"timeout": self.busy_timeout_seconds},
        )
        event.listen(engine.sync_engine, "connect", _configure_sqlite_connection)
        return engine

    async def open(self) -> None:
        """Open the database and create the tasks table and its indexes.

        Safe to call multiple times; only the first call has an effect.

        Raises:
            StorageUnavailableError: If the database cannot be created or opened.

        """
        async with self._open_lock:
            if self._engine is not None:
                return

            engine: AsyncEngine | None = None
            try:
                engine = self._create_engine()
                async with engine.begin() as conn:
                    await conn.run_sync(
                        SQLModel.metadata.create_all, tables=[Task.__table__]
                    )
            except (OSError, SQLAlchemyError) as e:
                if engine is not None:
                    await engine.dispose()
                raise StorageUnavailableError(
                    f"Cannot open task database at {self.path}: {e}", cause=e
                ) from e

            self._engine = engine
            self._session_factory = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
            logger.info(f"Record store opened at {self.path}")

    async def close(self) -> None:
        """Dispose of the engine; the store can be opened again later."""
        async with self._open_lock:
            if self._engine is None:
                return
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info(f"Record store closed at {self.path}")

    # ---- transactions ----

    @asynccontextmanager
    async def transaction(
        self, operation: str = "transaction"
    ) -> AsyncIterator[TaskRepository]:
        """Run a block of repository calls as one atomic unit.

        Usage:
            async with store.transaction("delete") as repo:
                await repo.remove(task_id)

        Raises:
            StorageUnavailableError: If the store is not open.
            StorageError: If SQLite fails; the transaction is rolled back.

        """
        if self._session_factory is None:
            raise StorageUnavailableError("Record store is not open")

        session = self._session_factory()
        try:
            yield TaskRepository(session)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Storage operation '{operation}' failed: {e}")
            raise StorageError(operation, e) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ---- single-operation API ----

    async def insert(self, task: TaskCore) -> int:
        """Persist a task without id and return the id assigned to it."""
        async with self.transaction("insert") as repo:
            task_id = await repo.insert(Task.from_core_model(task))
        logger.debug(f"Inserted task {task_id}")
        return task_id

    async def get(self, task_id: int) -> TaskCore | None:
        """Get one task by id."""
        async with self.transaction("get") as repo:
            entity = await repo.get_by_id(task_id)
            return entity.to_core_model() if entity else None

    async def get_all(self) -> list[TaskCore]:
        """Get every stored task."""
        async with self.transaction("get_all") as repo:
            return [entity.to_core_model() for entity in await repo.list_all()]

    async def get_by_index(self, index: TaskIndex | str, value) -> list[TaskCore]:
        """Get tasks whose indexed field (parent_id, type, status) equals ``value``."""
        async with self.transaction("get_by_index") as repo:
            entities = await repo.get_by_index(index, value)
            return [entity.to_core_model() for entity in entities]

    async def put(self, task: TaskCore) -> None:
        """Replace the record stored under ``task.id``; inserts if it is missing."""
        if task.id is None:
            raise ValueError("put() requires a task with an id")
        async with self.transaction("put") as repo:
            await repo.put(Task.from_core_model(task))
        logger.debug(f"Replaced task {task.id}")

    async def remove(self, task_id: int) -> None:
        """Delete one record; deleting a missing id is not an error."""
        async with self.transaction("remove") as repo:
            removed = await repo.remove(task_id)
        if removed:
            logger.debug(f"Removed task {task_id}")

    async def count(self) -> int:
        """Number of stored tasks."""
        async with self.transaction("count") as repo:
            return await repo.count()


__all__ = ["RecordStore"]
