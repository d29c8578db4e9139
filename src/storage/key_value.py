"""Key/value persistence backed by one JSON file per key."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonKeyValueStore:
    """
    Stores JSON values under well-known keys.

    Each key maps to ``{root}/{key}.json``. Writes go through a temporary file
    and an atomic replace so a crash never leaves a half-written value.
    """

    def __init__(self, root: Path) -> None:
        """
        Initialize the store.

        Args:
            root: Directory holding one file per key
        """
        self.root = root

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """
        Read the value stored under ``key``.

        Returns:
            The decoded value, or None if nothing is stored

        Raises:
            ValueError: If the stored data is not valid JSON
            OSError: If the file exists but cannot be read
        """
        path = self._path_for(key)
        if not path.exists():
            return None
        text = path.read_text(encoding="utf-8")
        return json.loads(text)

    def set(self, key: str, value: Any) -> None:
        """Write ``value`` under ``key``, replacing any previous value."""
        path = self._path_for(key)
        self.root.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(value, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
        logger.debug("Saved storage key %s", key)

    def delete(self, key: str) -> None:
        """Remove the value stored under ``key`` if present."""
        path = self._path_for(key)
        if path.exists():
            path.unlink()
