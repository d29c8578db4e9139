"""Shared pytest fixtures for TodoKeeper tests."""

import json
import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

# Run Qt headless unless a platform is already chosen.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from src.core.config import DeletionSettings
from src.deletion.confirmation import ConfirmationProtocol
from src.deletion.coordinator import DeletionCoordinator
from src.deletion.recycle_bin import RecycleBin
from src.storage.key_value import JsonKeyValueStore
from src.storage.task_store import JsonTaskStore

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for deterministic expiry."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_app_dirs(temp_dir):
    """Keep ConfigManager from creating directories in the real profile."""
    with patch("src.core.config.CONFIG_DIR", temp_dir / "config"), \
            patch("src.core.config.LOGS_DIR", temp_dir / "logs"), \
            patch("src.core.config.DATA_DIR", temp_dir / "data"):
        yield


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config file path."""
    return temp_dir / "config" / "config.json"


@pytest.fixture
def valid_config_data():
    """Return valid configuration data."""
    return {
        "version": 1,
        "settings": {
            "confirm_before_delete": True,
            "confirm_timeout_ms": 2000,
            "recycle_bin_retention_days": 7,
            "max_batch_size": 10,
            "history_limit": 20,
            "animation_duration_ms": 0,
        },
        "last_sweep": None,
    }


@pytest.fixture
def temp_config_with_data(temp_config_file, valid_config_data):
    """Create a temporary config file with valid data."""
    temp_config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(temp_config_file, "w", encoding="utf-8") as f:
        json.dump(valid_config_data, f)
    return temp_config_file


@pytest.fixture
def storage(temp_dir):
    """Key/value storage rooted in the temp directory."""
    return JsonKeyValueStore(temp_dir / "data")


@pytest.fixture
def store(storage):
    """Empty task store."""
    return JsonTaskStore(storage)


@pytest.fixture
def recycle_bin(storage):
    """Empty recycle bin sharing the task store's storage."""
    return RecycleBin(storage)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Settings with confirmation off so deletes act immediately."""
    return DeletionSettings(
        confirm_before_delete=False,
        confirm_timeout_ms=0,
        max_batch_size=5,
        history_limit=10,
        animation_duration_ms=0,
    )


@pytest.fixture
def coordinator(store, recycle_bin, settings, clock):
    """Coordinator wired to the temp store, bin and fake clock."""
    return DeletionCoordinator(store, recycle_bin, settings=settings, clock=clock)


@pytest.fixture
def tasks(store):
    """Three live tasks."""
    return [store.add_task(title) for title in ("Write report", "Buy milk", "Call Sam")]
