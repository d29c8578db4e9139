"""Deletion lifecycle package for TodoKeeper."""

from src.deletion.errors import (
    DeletionError,
    TaskNotFound,
    NotInRecycleBin,
    BatchTooLarge,
    StorageFailure,
    DuplicateRecordError,
)
from src.deletion.lifecycle import InvalidTransitionError
from src.deletion.recycle_bin import RecycleBin
from src.deletion.history import HistoryLog
from src.deletion.events import EventKind, DeletionEvent, EventNotifier
from src.deletion.confirmation import (
    ConfirmationMessage,
    ConfirmationProtocol,
    PendingConfirmation,
    build_message,
)
from src.deletion.coordinator import DeletionCoordinator

__all__ = [
    # Errors
    "DeletionError",
    "TaskNotFound",
    "NotInRecycleBin",
    "BatchTooLarge",
    "StorageFailure",
    "DuplicateRecordError",
    "InvalidTransitionError",
    # Components
    "RecycleBin",
    "HistoryLog",
    "EventKind",
    "DeletionEvent",
    "EventNotifier",
    "ConfirmationMessage",
    "ConfirmationProtocol",
    "PendingConfirmation",
    "build_message",
    "DeletionCoordinator",
]
