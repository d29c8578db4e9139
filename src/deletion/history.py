"""Bounded per-task audit trail of deletion lifecycle transitions."""

from __future__ import annotations

from collections import defaultdict, deque

from src.core.models import HistoryEntry

DEFAULT_HISTORY_LIMIT = 100


class HistoryLog:
    """Append-only history per task, capped with oldest-first eviction."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._entries: defaultdict[str, deque[HistoryEntry]] = defaultdict(
            lambda: deque(maxlen=self.limit)
        )

    def append(self, entry: HistoryEntry) -> None:
        self._entries[entry.task_id].append(entry)

    def get_history(self, task_id: str) -> list[HistoryEntry]:
        """Return entries for ``task_id``, oldest first."""
        entries = self._entries.get(task_id)
        return list(entries) if entries else []

    def clear(self, task_id: str | None = None) -> None:
        """Drop history for one task, or for all tasks."""
        if task_id is None:
            self._entries.clear()
        else:
            self._entries.pop(task_id, None)
