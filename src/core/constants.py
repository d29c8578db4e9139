"""Application constants and paths for TodoKeeper."""

import os
from pathlib import Path

# Application metadata
APP_NAME = "TodoKeeper"
APP_VERSION = "1.0.0"
CONFIG_VERSION = 1

# Base paths
APPDATA_ROOT = Path(os.environ.get("APPDATA") or Path.home() / ".local" / "share") / APP_NAME
CONFIG_DIR = APPDATA_ROOT
LOGS_DIR = APPDATA_ROOT / "logs"
DATA_DIR = APPDATA_ROOT / "data"

# File paths
CONFIG_FILE = CONFIG_DIR / "config.json"
DEBUG_LOG_FILE = LOGS_DIR / "debug.log"
AUDIT_LOG_FILE = LOGS_DIR / "audit.log"

# Logging settings
DEBUG_LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
DEBUG_LOG_BACKUP_COUNT = 3

# Well-known storage key for the persisted recycle bin
RECYCLE_BIN_KEY = "todolist-recycle-bin"

# Recorded as RecycleRecord.deleted_by; there is no account system
DEFAULT_DELETED_BY = "user"


# Default settings
DEFAULT_SETTINGS = {
    "confirm_before_delete": True,
    "confirm_timeout_ms": 3000,
    "recycle_bin_retention_days": 30,
    "max_batch_size": 50,
    "history_limit": 100,
    "animation_duration_ms": 300,
}

# Settings that must be integers, with their minimum allowed value
INTEGER_SETTINGS = {
    "confirm_timeout_ms": 0,
    "recycle_bin_retention_days": 1,
    "max_batch_size": 1,
    "history_limit": 1,
    "animation_duration_ms": 0,
}

VALID_PRIORITIES = frozenset({"low", "medium", "high"})
