"""Recycle bin of soft-deleted tasks with time-based expiry."""

from __future__ import annotations

import logging
from datetime import datetime

from src.core.constants import RECYCLE_BIN_KEY
from src.core.models import RecycleRecord
from src.deletion.errors import DuplicateRecordError
from src.storage.key_value import JsonKeyValueStore

logger = logging.getLogger(__name__)


class RecycleBin:
    """
    In-memory recycle bin mirrored to persistent storage.

    The bin holds at most one record per task id. Every mutation is saved
    immediately; a failed save is logged and the in-memory state stays
    authoritative until the next successful save.
    """

    def __init__(self, storage: JsonKeyValueStore, key: str = RECYCLE_BIN_KEY) -> None:
        """
        Initialize an empty RecycleBin.

        Args:
            storage: Key/value persistence backend
            key: Storage key the ordered record list is saved under
        """
        self._storage = storage
        self._key = key
        self._records: dict[str, RecycleRecord] = {}

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, task_id: str) -> RecycleRecord | None:
        """Return the record for ``task_id``, or None."""
        return self._records.get(task_id)

    def records(self) -> list[RecycleRecord]:
        """Return all records, oldest deletion first."""
        return sorted(self._records.values(), key=lambda r: r.deleted_at)

    def load(self) -> int:
        """
        Replace the in-memory state with the persisted record list.

        Missing data yields an empty bin. Unreadable data is logged and also
        yields an empty bin; the affected tasks become unrecoverable.

        Returns:
            Number of records loaded
        """
        self._records = {}

        try:
            raw = self._storage.get(self._key)
        except (ValueError, OSError) as e:
            logger.error("Recycle bin data is unreadable, starting empty: %s", e)
            return 0

        if raw is None:
            logger.debug("No persisted recycle bin found")
            return 0

        if not isinstance(raw, list):
            logger.error("Recycle bin data is not a list, starting empty")
            return 0

        for item in raw:
            try:
                record = RecycleRecord.from_dict(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Dropping corrupt recycle bin record: %s", e)
                continue
            if record.task_id in self._records:
                logger.warning("Dropping duplicate recycle bin record for %s", record.task_id)
                continue
            self._records[record.task_id] = record

        logger.info("Loaded %d recycle bin record(s)", len(self._records))
        return len(self._records)

    def save(self) -> bool:
        """
        Persist the full record list.

        Returns:
            True if the save succeeded, False otherwise
        """
        try:
            self._storage.set(self._key, [r.to_dict() for r in self.records()])
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save recycle bin: %s", e)
            return False

    def add(self, record: RecycleRecord) -> None:
        """
        Add a record for a newly soft-deleted task.

        Raises:
            DuplicateRecordError: If the task already has a record
        """
        if record.task_id in self._records:
            raise DuplicateRecordError(record.task_id)
        self._records[record.task_id] = record
        logger.debug("Recycle bin add: %s (expires %s)", record.task_id, record.expires_at)
        self.save()

    def remove(self, task_id: str) -> RecycleRecord | None:
        """Remove the record for ``task_id`` if present and return it."""
        record = self._records.pop(task_id, None)
        if record is None:
            return None
        logger.debug("Recycle bin remove: %s", task_id)
        self.save()
        return record

    def sweep_expired(self, now: datetime) -> list[RecycleRecord]:
        """
        Return the records whose expiry is at or before ``now``.

        The bin is not modified; callers hard-delete each task and then
        remove its record.
        """
        return [r for r in self.records() if r.is_expired(now)]
