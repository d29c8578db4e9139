"""Task store: the system of record for whether a task is live, soft-deleted or gone."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from src.core.constants import VALID_PRIORITIES
from src.core.models import Task, utc_now
from src.deletion.errors import TaskNotFound
from src.storage.key_value import JsonKeyValueStore

logger = logging.getLogger(__name__)

TASKS_KEY = "todolist-tasks"


class TaskStore(Protocol):
    """Storage contract consumed by the deletion lifecycle."""

    async def find_task(self, task_id: str) -> Task | None:
        """Return the task (live or soft-deleted), or None if it does not exist."""
        ...

    async def soft_delete_task(self, task_id: str) -> None:
        """Mark a live task deleted. Raises TaskNotFound if there is no live task."""
        ...

    async def hard_delete_task(self, task_id: str) -> None:
        """Remove a task for good. Raises TaskNotFound if it does not exist."""
        ...

    async def restore_task(self, task_id: str) -> None:
        """Clear the deleted mark. Raises TaskNotFound if there is no soft-deleted task."""
        ...

    async def list_deleted_tasks(self) -> list[Task]:
        """Return every soft-deleted task."""
        ...


class JsonTaskStore:
    """
    Task store persisted as a JSON list under a single storage key.

    Every mutation is written through before the call returns.
    """

    def __init__(self, storage: JsonKeyValueStore, key: str = TASKS_KEY) -> None:
        """
        Initialize the store and load persisted tasks.

        Args:
            storage: Key/value persistence backend
            key: Storage key holding the task list
        """
        self._storage = storage
        self._key = key
        self._tasks: dict[str, Task] = {}
        self._load()

    @classmethod
    def at(cls, data_dir: Path) -> JsonTaskStore:
        """Create a store persisted under ``data_dir``."""
        return cls(JsonKeyValueStore(data_dir))

    def _load(self) -> None:
        try:
            raw = self._storage.get(self._key)
        except (ValueError, OSError) as e:
            logger.error("Failed to load tasks, starting empty: %s", e)
            return

        if raw is None:
            return

        if not isinstance(raw, list):
            logger.error("Persisted tasks are not a list, starting empty")
            return

        for item in raw:
            try:
                task = Task.from_dict(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping unreadable task entry: %s", e)
                continue
            self._tasks[task.id] = task
        logger.debug("Loaded %d tasks", len(self._tasks))

    def _save(self) -> None:
        self._storage.set(self._key, [t.to_dict() for t in self._tasks.values()])

    def _commit(self, task_id: str, previous: Task) -> None:
        """Persist a mutation, putting the previous task back if the write fails."""
        try:
            self._save()
        except OSError:
            self._tasks[task_id] = previous
            raise

    # Generic CRUD used by the application shell

    def add_task(self, title: str, **fields) -> Task:
        """Create and persist a new live task."""
        if not title.strip():
            raise ValueError("Task title must not be empty")
        priority = fields.get("priority", "medium")
        if priority not in VALID_PRIORITIES:
            raise ValueError(f"Invalid priority: {priority}")
        task = Task(title=title.strip(), **fields)
        self._tasks[task.id] = task
        self._save()
        logger.info("Created task %s", task.id)
        return task

    def list_tasks(self, include_deleted: bool = False) -> list[Task]:
        """Return tasks ordered by creation time."""
        tasks = [t for t in self._tasks.values() if include_deleted or t.is_live]
        return sorted(tasks, key=lambda t: t.created_at)

    # Deletion contract

    async def find_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    async def soft_delete_task(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None or not task.is_live:
            raise TaskNotFound(task_id)
        previous = task.snapshot()
        now = utc_now()
        task.deleted = True
        task.deleted_at = now
        task.updated_at = now
        self._commit(task_id, previous)

    async def hard_delete_task(self, task_id: str) -> None:
        if task_id not in self._tasks:
            raise TaskNotFound(task_id)
        previous = self._tasks.pop(task_id)
        self._commit(task_id, previous)

    async def restore_task(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None or task.is_live:
            raise TaskNotFound(task_id)
        previous = task.snapshot()
        task.deleted = False
        task.deleted_at = None
        task.updated_at = utc_now()
        self._commit(task_id, previous)

    async def list_deleted_tasks(self) -> list[Task]:
        return [t.snapshot() for t in self.list_tasks(include_deleted=True) if not t.is_live]
