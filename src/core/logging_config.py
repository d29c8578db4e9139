"""Logging configuration for TodoKeeper.

Two targets:
    debug.log   rotating, everything at DEBUG and above
    audit.log   append-only, one line per delete, restore, sweep or bin purge
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Sequence

from .constants import (
    LOGS_DIR,
    DEBUG_LOG_FILE,
    AUDIT_LOG_FILE,
    DEBUG_LOG_MAX_BYTES,
    DEBUG_LOG_BACKUP_COUNT,
)

AUDIT_LOGGER_NAME = "audit"

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
AUDIT_FORMAT = "%(asctime)s | %(message)s"

# Ids listed per audit line; the counts are always complete
AUDIT_ID_LIMIT = 10


def _debug_handler(path: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        path,
        maxBytes=DEBUG_LOG_MAX_BYTES,
        backupCount=DEBUG_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
    return handler


def _audit_handler(path: Path) -> logging.Handler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(AUDIT_FORMAT))
    return handler


def setup_logging(debug_mode: bool = False, logs_dir: Optional[Path] = None) -> None:
    """
    Configure application logging.

    Handlers installed by an earlier call are replaced, so calling this twice
    does not duplicate output.

    Args:
        debug_mode: If True, also output DEBUG to the console
        logs_dir: Directory for both log files. Defaults to the app log directory.
    """
    if logs_dir is None:
        logs_dir = LOGS_DIR
        debug_file, audit_file = DEBUG_LOG_FILE, AUDIT_LOG_FILE
    else:
        debug_file, audit_file = logs_dir / DEBUG_LOG_FILE.name, logs_dir / AUDIT_LOG_FILE.name
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_debug_handler(debug_file))

    if debug_mode:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
        root_logger.addHandler(console_handler)
    else:
        # The event loop's own debug chatter is only useful when debugging
        logging.getLogger("asyncio").setLevel(logging.WARNING)

    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    audit_logger.handlers.clear()
    audit_logger.addHandler(_audit_handler(audit_file))


def get_audit_logger() -> logging.Logger:
    """Return the audit logger instance."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


def _format_ids(task_ids: Sequence[str]) -> str:
    shown = ",".join(task_ids[:AUDIT_ID_LIMIT])
    return shown + ("..." if len(task_ids) > AUDIT_ID_LIMIT else "")


def log_delete_operation(
    action: str,
    succeeded: Sequence[str],
    failed: Optional[Sequence[str]] = None,
) -> None:
    """
    Write one audit line for a lifecycle operation.

    Args:
        action: DELETE, PERMANENT_DELETE, RESTORE, SWEEP, EMPTY_BIN or ADOPT
        succeeded: Task ids the operation completed for
        failed: Task ids the operation failed for
    """
    failed = failed or []
    line = "%s | succeeded=%d | failed=%d | tasks=%s"
    args = [action, len(succeeded), len(failed), _format_ids(succeeded)]
    if failed:
        line += " | failed_tasks=%s"
        args.append(_format_ids(failed))
    get_audit_logger().info(line, *args)
