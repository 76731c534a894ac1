"""Task service layer bridging business rules and the record store.

Enforces the task/sub-task relationship, cascading deletes and the
completion constraint, and provides list filtering, search and the CSV
backup round-trip. Every mutating operation runs in a single store
transaction and is serialized with the service's write lock.
"""

import asyncio
import logging
from collections.abc import Callable

from ..config import get_settings
from ..database import RecordStore
from ..exceptions import (
    ConstraintViolationError,
    CsvFormatError,
    TaskNotFoundError,
    TaskValidationError,
)
from ..repositories import TaskRepository
from ..schemas.database import Task, TaskIndex
from ..schemas.models import (
    ChangeKind,
    TaskChange,
    TaskCore,
    TaskCreate,
    TaskFilter,
    TaskStatus,
    TaskType,
    utc_now,
)
from ..schemas.transformations import CsvTaskRow, TaskCsvCodec
from ..utils.task_ordering import TaskOrdering


logger = logging.getLogger(__name__)

TaskChangeListener = Callable[[TaskChange], None]


class TaskService:
    """Domain operations on hierarchical tasks.

    Coordinates the record store, validates input against the task rules and
    notifies subscribers after each committed change.
    """

    def __init__(
        self,
        store: RecordStore | None = None,
        codec: TaskCsvCodec | None = None,
    ):
        """Initialize task service with a record store.

        Args:
            store: Record store. If None, builds one from the global settings.
            codec: CSV codec. If None, uses the configured CSV dialect.

        """
        if store is None:
            store = RecordStore.from_settings()
        if codec is None:
            codec = TaskCsvCodec(legacy_format=get_settings().csv.legacy_format)

        self.store = store
        self.codec = codec
        self._write_lock = asyncio.Lock()
        self._listeners: list[TaskChangeListener] = []

    async def init(self) -> None:
        """Open the record store (idempotent)."""
        await self.store.open()

    async def close(self) -> None:
        """Close the record store."""
        await self.store.close()

    # ---- change notifications ----

    def subscribe(self, listener: TaskChangeListener) -> Callable[[], None]:
        """Register a listener for committed changes.

        Returns:
            A callable that removes the listener again.

        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ChangeKind, task_ids: list[int]) -> None:
        change = TaskChange(kind=kind, task_ids=task_ids)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(f"Task change listener failed on {kind.value}")

    # ---- validation ----

    @staticmethod
    def _validate_title(title: str) -> None:
        if not title or not title.strip():
            raise TaskValidationError("Task title must not be empty")

    @staticmethod
    async def _validate_parent(
        repo: TaskRepository, task_type: TaskType, parent_id: int | None
    ) -> None:
        if task_type == TaskType.TASK:
            if parent_id is not None:
                raise TaskValidationError("A top-level task cannot have a parent")
            return

        if parent_id is None:
            raise TaskValidationError("A sub-task requires a parent task")
        parent = await repo.get_by_id(parent_id)
        if parent is None:
            raise TaskValidationError(f"Parent task {parent_id} does not exist")
        if parent.type != TaskType.TASK:
            raise TaskValidationError(
                f"Task {parent_id} is a sub-task and cannot own sub-tasks"
            )

    @staticmethod
    async def _ensure_can_complete(repo: TaskRepository, task_id: int) -> None:
        incomplete = await repo.get_incomplete_subtasks(task_id)
        if incomplete:
            incomplete_ids = [subtask.id for subtask in incomplete]
            logger.warning(
                f"Rejected completing task {task_id}: "
                f"{len(incomplete_ids)} sub-task(s) still open"
            )
            raise ConstraintViolationError(task_id, incomplete_ids)

    # ---- queries ----

    async def get_task(self, task_id: int) -> TaskCore | None:
        """Get a single task by id."""
        return await self.store.get(task_id)

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[TaskCore]:
        """List tasks filtered and ordered for display.

        Filters apply in order: type (top-level tasks by default), bucket,
        status, search text. Results sort by status rank, then due date.
        """
        return TaskOrdering.apply(await self.store.get_all(), task_filter)

    async def get_subtasks(self, parent_id: int) -> list[TaskCore]:
        """Get the sub-tasks of a task."""
        return await self.store.get_by_index(TaskIndex.PARENT_ID, parent_id)

    async def search_tasks(self, query: str) -> list[TaskCore]:
        """Search all tasks by title or description (case-insensitive)."""
        return [task for task in await self.store.get_all() if task.matches(query)]

    # ---- mutations ----

    async def create_task(self, task_input: TaskCreate) -> TaskCore:
        """Create a task or sub-task.

        New tasks start as Todo with ``created_at`` set to now.

        Raises:
            TaskValidationError: If the title is blank or the parent reference
                does not fit the task type.

        """
        self._validate_title(task_input.title)

        async with self._write_lock, self.store.transaction("create_task") as repo:
            await self._validate_parent(repo, task_input.type, task_input.parent_id)
            entity = Task.from_core_model(
                TaskCore(
                    **task_input.model_dump(),
                    status=TaskStatus.TODO,
                    created_at=utc_now(),
                )
            )
            await repo.insert(entity)
            created = entity.to_core_model()

        logger.info(f"Created {created.type.value} {created.id}: {created.title}")
        self._notify(ChangeKind.CREATED, [created.id])
        return created

    async def update_task(self, task: TaskCore) -> TaskCore:
        """Replace a stored task with ``task``.

        ``type`` cannot change and ``created_at`` is kept from the stored
        record.

        Raises:
            TaskNotFoundError: If no task has ``task.id``.
            TaskValidationError: If the new content breaks a creation rule or
                changes the type.
            ConstraintViolationError: If the task would become Completed while
                a sub-task is still open.

        """
        if task.id is None:
            raise TaskValidationError("update_task() requires a task id")
        self._validate_title(task.title)

        async with self._write_lock, self.store.transaction("update_task") as repo:
            existing = await repo.get_by_id(task.id)
            if existing is None:
                raise TaskNotFoundError(task.id)
            if task.type != existing.type:
                raise TaskValidationError("Task type cannot change after creation")

            await self._validate_parent(repo, task.type, task.parent_id)
            if task.status == TaskStatus.COMPLETED and task.type == TaskType.TASK:
                await self._ensure_can_complete(repo, task.id)

            updated = task.model_copy(update={"created_at": existing.created_at})
            await repo.put(Task.from_core_model(updated))

        logger.debug(f"Updated task {updated.id}")
        self._notify(ChangeKind.UPDATED, [updated.id])
        return updated

    async def set_status(self, task_id: int, status: TaskStatus | str) -> TaskCore:
        """Move a task to ``status``.

        Any status may follow any other, but a task with sub-tasks only
        enters Completed once all of them are Completed.

        Raises:
            TaskNotFoundError: If the task does not exist.
            ConstraintViolationError: If completing is blocked by open
                sub-tasks; the stored status is left unchanged.

        """
        status = TaskStatus(status)

        async with self._write_lock, self.store.transaction("set_status") as repo:
            entity = await repo.get_by_id(task_id)
            if entity is None:
                raise TaskNotFoundError(task_id)
            if status == TaskStatus.COMPLETED and entity.type == TaskType.TASK:
                await self._ensure_can_complete(repo, task_id)

            updated = entity.to_core_model().model_copy(update={"status": status})
            await repo.put(Task.from_core_model(updated))

        logger.debug(f"Task {task_id} status -> {status.value}")
        self._notify(ChangeKind.UPDATED, [task_id])
        return updated

    async def delete_task(self, task_id: int) -> None:
        """Delete a task together with its sub-tasks in one transaction.

        Deleting a missing id does nothing.
        """
        async with self._write_lock, self.store.transaction("delete_task") as repo:
            entity = await repo.get_by_id(task_id)
            if entity is None:
                logger.debug(f"Delete of missing task {task_id} ignored")
                return

            deleted_ids = [subtask.id for subtask in await repo.get_subtasks(task_id)]
            deleted_ids.append(task_id)
            await repo.remove_many(deleted_ids)

        logger.info(f"Deleted task {task_id} and {len(deleted_ids) - 1} sub-task(s)")
        self._notify(ChangeKind.DELETED, deleted_ids)

    # ---- CSV backup ----

    async def export_csv(self) -> str:
        """Export every task as a CSV document."""
        return self.codec.encode(await self.store.get_all())

    async def import_csv(self, text: str) -> list[TaskCore]:
        """Import a CSV document produced by ``export_csv``.

        The document is parsed completely before anything is written, and
        all rows are inserted in one transaction: any malformed or invalid
        row aborts the whole import. Ids are regenerated. A sub-task keeps
        its parentId when that names a task already in the store; otherwise
        it is attached to the new id of the task row with that id in the
        same document (restoring into another database).

        Raises:
            CsvFormatError: If a row is malformed or breaks a creation rule.

        """
        rows = self.codec.decode(text)
        if not rows:
            return []

        document_task_ids = {
            row.source_id
            for row in rows
            if row.task.type == TaskType.TASK and row.source_id is not None
        }
        id_map: dict[int, int] = {}
        created: list[TaskCore] = []

        def needs_remap(task: TaskCore, stored_task_ids: set[int]) -> bool:
            return (
                task.type == TaskType.SUB_TASK
                and task.parent_id not in stored_task_ids
                and task.parent_id in document_task_ids
            )

        async def insert_row(
            repo: TaskRepository, row: CsvTaskRow, stored_task_ids: set[int]
        ) -> None:
            task = row.task
            if needs_remap(task, stored_task_ids):
                task = task.model_copy(update={"parent_id": id_map[task.parent_id]})
            try:
                self._validate_title(task.title)
                await self._validate_parent(repo, task.type, task.parent_id)
            except TaskValidationError as e:
                raise CsvFormatError(str(e), row.line_number) from e

            entity = Task.from_core_model(task)
            new_id = await repo.insert(entity)
            if task.type == TaskType.TASK and row.source_id is not None:
                id_map[row.source_id] = new_id
            created.append(entity.to_core_model())

        async with self._write_lock, self.store.transaction("import_csv") as repo:
            # Task ids stored before this import.
            stored_tasks = await repo.get_by_index(TaskIndex.TYPE, TaskType.TASK)
            stored_task_ids = {task.id for task in stored_tasks}
            deferred: list[CsvTaskRow] = []
            for row in rows:
                if (
                    needs_remap(row.task, stored_task_ids)
                    and row.task.parent_id not in id_map
                ):
                    # Parent row appears later in the document.
                    deferred.append(row)
                    continue
                await insert_row(repo, row, stored_task_ids)
            for row in deferred:
                await insert_row(repo, row, stored_task_ids)

        logger.info(f"Imported {len(created)} task(s) from CSV")
        self._notify(ChangeKind.IMPORTED, [task.id for task in created])
        return created
