"""Error types raised by the deletion lifecycle."""

from __future__ import annotations


class DeletionError(Exception):
    """Base class for deletion lifecycle errors."""

    pass


class TaskNotFound(DeletionError):
    """Raised when a task does not exist in the state an operation expects."""

    def __init__(self, task_id: str, message: str | None = None) -> None:
        self.task_id = task_id
        super().__init__(message or f"Task not found: {task_id}")


class NotInRecycleBin(DeletionError):
    """Raised when a restore targets a task with no recycle bin record."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task is not in the recycle bin: {task_id}")


class BatchTooLarge(DeletionError):
    """Raised when a batch request exceeds the configured size cap."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Batch of {size} tasks exceeds the limit of {limit}")


class StorageFailure(DeletionError):
    """Raised when the task store fails an operation for a reason other than a missing task."""

    def __init__(self, task_id: str, operation: str, cause: BaseException | None = None) -> None:
        self.task_id = task_id
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Storage {operation} failed for {task_id}{detail}")


class DuplicateRecordError(DeletionError):
    """Raised when a recycle bin record already exists for a task."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Recycle bin already holds a record for {task_id}")
