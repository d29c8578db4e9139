"""User-visible summaries of deletion outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.core.models import BatchResult
from src.deletion.errors import (
    BatchTooLarge,
    NotInRecycleBin,
    StorageFailure,
    TaskNotFound,
)


class Level(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """A message for the status area, with optional per-item failure lines."""

    level: Level
    message: str
    details: list[str] = field(default_factory=list)


def _tasks(count: int) -> str:
    return "Task" if count == 1 else f"{count} tasks"


def describe_error(error: BaseException) -> str:
    """Return a short, user-facing reason for a deletion error."""
    if isinstance(error, BatchTooLarge):
        return f"You can delete at most {error.limit} tasks at once"
    if isinstance(error, NotInRecycleBin):
        return "Task is not in the recycle bin"
    if isinstance(error, TaskNotFound):
        return "Task no longer exists"
    if isinstance(error, StorageFailure):
        return "Could not save changes"
    return str(error) or type(error).__name__


def failure_notification(error: BaseException, action: str = "Delete") -> Notification:
    """Single notification for a request that failed as a whole."""
    return Notification(Level.ERROR, f"{action} failed: {describe_error(error)}")


def summarize_batch(result: BatchResult) -> list[Notification]:
    """
    Build the notifications for a finished delete request.

    A cancelled request produces nothing. A partial failure produces a success
    notification for the completed subset followed by an itemized failure list.
    """
    if result.cancelled or result.total == 0:
        return []

    notifications = []
    done = "permanently deleted" if result.permanent else "moved to recycle bin"

    if result.succeeded:
        count = len(result.succeeded)
        notifications.append(Notification(Level.SUCCESS, f"{_tasks(count)} {done}"))

    if result.failed:
        details = [
            f"{task_id}: {describe_error(error)}"
            for task_id, error in zip(result.failed, result.errors)
        ]
        notifications.append(Notification(
            Level.ERROR,
            f"{_tasks(len(result.failed))} could not be deleted",
            details,
        ))

    return notifications


def restored_notification(count: int = 1) -> Notification:
    return Notification(Level.SUCCESS, f"{_tasks(count)} restored")
