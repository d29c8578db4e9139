"""Core module for TodoKeeper."""

from .config import ConfigManager, ConfigError, DeletionSettings
from .logging_config import setup_logging, get_audit_logger, log_delete_operation
from .models import (
    Task,
    TaskState,
    RecycleRecord,
    HistoryEntry,
    Decision,
    CancelReason,
    ConfirmationRequest,
    BatchResult,
)

__all__ = [
    # Config
    "ConfigManager",
    "ConfigError",
    "DeletionSettings",
    # Logging
    "setup_logging",
    "get_audit_logger",
    "log_delete_operation",
    # Models
    "Task",
    "TaskState",
    "RecycleRecord",
    "HistoryEntry",
    "Decision",
    "CancelReason",
    "ConfirmationRequest",
    "BatchResult",
]
