"""Deletion lifecycle coordinator for TodoKeeper.

SAFETY CONTRACT:
- A task id is in at most one transient state at a time (in-flight guard)
- A duplicate delete request for an in-flight id is a silent no-op
- The in-flight guard is released on every exit path, including failure
- A recycle bin record exists only after the store's soft delete succeeded
- Batch members run concurrently and fail independently; nothing rolls back
- Exit-animation failures never block the data-level transition
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from src.core.config import DeletionSettings
from src.core.constants import DEFAULT_DELETED_BY
from src.core.logging_config import log_delete_operation
from src.core.models import (
    BatchResult,
    Decision,
    HistoryEntry,
    RecycleRecord,
    Task,
    TaskState,
    utc_now,
)
from src.deletion.confirmation import ConfirmationProtocol
from src.deletion.errors import (
    BatchTooLarge,
    NotInRecycleBin,
    StorageFailure,
    TaskNotFound,
)
from src.deletion.events import DeletionEvent, EventKind, EventNotifier
from src.deletion.history import HistoryLog
from src.deletion.lifecycle import check_transition
from src.deletion.recycle_bin import RecycleBin

if TYPE_CHECKING:
    from src.storage.task_store import TaskStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ExitAnimation = Callable[[str], Awaitable[None]]


class DeletionCoordinator:
    """
    Turns delete, restore and permanent-delete requests into guarded
    state transitions backed by the recycle bin.

    Transaction Flow (soft delete):
    1. Guard task id → no-op if already in flight
    2. Run exit animation hook (errors swallowed)
    3. TaskStore.soft_delete_task()
    4. RecycleBin.add() with expires_at = now + retention
    5. HistoryLog.append(), EventNotifier.publish(TASK_DELETED)
    6. Release guard
    """

    def __init__(
        self,
        store: TaskStore,
        recycle_bin: RecycleBin,
        settings: DeletionSettings | None = None,
        history: HistoryLog | None = None,
        notifier: EventNotifier | None = None,
        confirmation: ConfirmationProtocol | None = None,
        clock: Clock | None = None,
        exit_animation: ExitAnimation | None = None,
    ) -> None:
        """
        Initialize the DeletionCoordinator.

        Args:
            store: Task store (system of record)
            recycle_bin: RecycleBin owned by this coordinator
            settings: Deletion settings. Defaults are used if None.
            history: HistoryLog. Creates one with the configured cap if None.
            notifier: EventNotifier. Creates a new one if None.
            confirmation: ConfirmationProtocol. Creates one from settings if None.
            clock: Returns the current UTC time
            exit_animation: Awaited with the task id before a soft delete
        """
        self.store = store
        self.recycle_bin = recycle_bin
        self.settings = settings or DeletionSettings()
        self.history = history or HistoryLog(self.settings.history_limit)
        self.notifier = notifier or EventNotifier()
        self.confirmation = confirmation or ConfirmationProtocol(
            default_timeout_ms=self.settings.confirm_timeout_ms,
            retention_days=self.settings.recycle_bin_retention_days,
        )
        self._clock = clock or utc_now
        self._exit_animation = exit_animation
        self._in_flight: dict[str, TaskState] = {}

    def set_exit_animation(self, hook: ExitAnimation | None) -> None:
        """Install the hook awaited before each soft delete."""
        self._exit_animation = hook

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.settings.recycle_bin_retention_days)

    def is_in_flight(self, task_id: str) -> bool:
        return task_id in self._in_flight

    async def state_of(self, task_id: str) -> TaskState:
        """Return the lifecycle state of ``task_id`` as currently known."""
        if task_id in self._in_flight:
            return self._in_flight[task_id]
        if task_id in self.recycle_bin:
            return TaskState.SOFT_DELETED
        task = await self.store.find_task(task_id)
        if task is None:
            return TaskState.GONE
        return TaskState.LIVE if task.is_live else TaskState.SOFT_DELETED

    def history_for(self, task_id: str) -> list[HistoryEntry]:
        return self.history.get_history(task_id)

    async def start(self) -> list[str]:
        """
        Load the persisted recycle bin and evict anything already expired.

        Soft-deleted tasks the bin has no record of (lost or corrupt bin data)
        are given a record again, expiring ``retention`` after their original
        delete time, so the sweep can evict them.

        Returns:
            Task ids removed by the startup sweep
        """
        self.recycle_bin.load()
        await self._adopt_orphans()
        return await self.sweep_expired()

    # Request entry point

    async def request_delete(
        self,
        task_ids: Iterable[str],
        permanent: bool = False,
        skip_confirmation: bool = False,
    ) -> BatchResult:
        """
        Handle a delete gesture on one or more tasks.

        Args:
            task_ids: Target task ids. The size limit applies to the ids as given;
                duplicates are collapsed afterwards.
            permanent: Hard delete instead of moving to the recycle bin
            skip_confirmation: Act immediately without prompting

        Returns:
            BatchResult; ``cancelled`` is set when the user declined

        Raises:
            BatchTooLarge: If more than ``max_batch_size`` ids are given
        """
        requested = list(task_ids)
        if len(requested) > self.settings.max_batch_size:
            logger.warning(
                "Rejected delete of %d tasks (limit %d)",
                len(requested), self.settings.max_batch_size,
            )
            raise BatchTooLarge(len(requested), self.settings.max_batch_size)
        ids = list(dict.fromkeys(requested))

        if not ids:
            return BatchResult(permanent=permanent)

        if not skip_confirmation and self.settings.confirm_before_delete:
            decision = await self.confirmation.prompt(ids, is_permanent=permanent)
            if decision is not Decision.CONFIRMED:
                logger.info("Delete of %d task(s) cancelled by user", len(ids))
                return BatchResult(permanent=permanent, cancelled=True)

        if permanent:
            result = await self.permanent_delete_many(ids)
        else:
            result = await self.soft_delete_many(ids)

        log_delete_operation(
            "PERMANENT_DELETE" if permanent else "DELETE",
            result.succeeded,
            result.failed,
        )
        return result

    # Single-task operations

    async def soft_delete(self, task_id: str) -> RecycleRecord | None:
        """
        Move a live task to the recycle bin.

        Returns:
            The new RecycleRecord, or None if the task was already in flight

        Raises:
            TaskNotFound: If the task is not live
            StorageFailure: If the store's soft delete fails
        """
        if task_id in self._in_flight:
            logger.debug("Soft delete of %s suppressed: already in flight", task_id)
            return None

        task = await self.store.find_task(task_id)
        if task is None or not task.is_live or task_id in self.recycle_bin:
            raise TaskNotFound(task_id)
        # find_task suspends; a sibling request may have claimed the id meanwhile
        if task_id in self._in_flight:
            return None

        check_transition(task_id, TaskState.LIVE, TaskState.DELETING)
        self._in_flight[task_id] = TaskState.DELETING
        try:
            await self._run_exit_animation(task_id)

            snapshot = task.snapshot()
            await self._call_store("soft_delete", task_id, self.store.soft_delete_task)

            deleted_at = self._clock()
            record = RecycleRecord(
                task_id=task_id,
                task=snapshot,
                deleted_at=deleted_at,
                expires_at=deleted_at + self.retention,
                deleted_by=DEFAULT_DELETED_BY,
            )
            self.recycle_bin.add(record)

            check_transition(task_id, TaskState.DELETING, TaskState.SOFT_DELETED)
            self._record(task_id, snapshot, TaskState.LIVE, TaskState.SOFT_DELETED)
            self.notifier.publish(DeletionEvent(
                kind=EventKind.TASK_DELETED,
                task_id=task_id,
                task=snapshot,
                recycle_record=record,
                is_permanent=False,
            ))
            logger.info("Moved task %s to recycle bin (expires %s)", task_id, record.expires_at)
            return record
        except (Exception, asyncio.CancelledError):
            self._roll_back(task_id, TaskState.DELETING, TaskState.LIVE)
            raise
        finally:
            self._in_flight.pop(task_id, None)

    async def permanent_delete(self, task_id: str) -> bool:
        """
        Irreversibly delete a soft-deleted or live task.

        Returns:
            True if the task was deleted, False if it was already in flight

        Raises:
            TaskNotFound: If the task is neither in the recycle bin nor live
            StorageFailure: If the store's hard delete fails
        """
        if task_id in self._in_flight:
            logger.debug("Permanent delete of %s suppressed: already in flight", task_id)
            return False

        record = self.recycle_bin.get(task_id)
        task = await self.store.find_task(task_id)
        if record is None and (task is None or not task.is_live):
            raise TaskNotFound(task_id)
        if task_id in self._in_flight:
            return False

        from_state = TaskState.SOFT_DELETED if record is not None else TaskState.LIVE
        snapshot = record.task if record is not None else task.snapshot()

        check_transition(task_id, from_state, TaskState.PERMANENT_DELETING)
        self._in_flight[task_id] = TaskState.PERMANENT_DELETING
        try:
            try:
                await self._call_store("hard_delete", task_id, self.store.hard_delete_task)
            except TaskNotFound:
                if record is None:
                    raise
                logger.warning("Task %s already missing from store; dropping its record", task_id)

            self.recycle_bin.remove(task_id)

            check_transition(task_id, TaskState.PERMANENT_DELETING, TaskState.GONE)
            self._record(task_id, snapshot, from_state, TaskState.GONE, permanent=True)
            self.notifier.publish(DeletionEvent(
                kind=EventKind.TASK_PERMANENTLY_DELETED,
                task_id=task_id,
                task=snapshot,
                recycle_record=record,
                is_permanent=True,
            ))
            logger.info("Permanently deleted task %s", task_id)
            return True
        except (Exception, asyncio.CancelledError):
            self._roll_back(task_id, TaskState.PERMANENT_DELETING, from_state)
            raise
        finally:
            self._in_flight.pop(task_id, None)

    async def restore(self, task_id: str) -> Task | None:
        """
        Bring a soft-deleted task back to the live list.

        Returns:
            The restored task snapshot, or None if the task was in flight

        Raises:
            NotInRecycleBin: If there is no recycle bin record for the task
            StorageFailure: If the store's restore fails
        """
        record = self.recycle_bin.get(task_id)
        if record is None:
            raise NotInRecycleBin(task_id)
        if task_id in self._in_flight:
            logger.debug("Restore of %s suppressed: already in flight", task_id)
            return None

        check_transition(task_id, TaskState.SOFT_DELETED, TaskState.RESTORING)
        self._in_flight[task_id] = TaskState.RESTORING
        try:
            await self._call_store("restore", task_id, self.store.restore_task)
            self.recycle_bin.remove(task_id)

            check_transition(task_id, TaskState.RESTORING, TaskState.LIVE)
            self._record(task_id, record.task, TaskState.SOFT_DELETED, TaskState.LIVE)
            self.notifier.publish(DeletionEvent(
                kind=EventKind.TASK_RESTORED,
                task_id=task_id,
                task=record.task,
                recycle_record=record,
                is_permanent=False,
            ))
            logger.info("Restored task %s", task_id)
            log_delete_operation("RESTORE", [task_id])
            return record.task
        except (Exception, asyncio.CancelledError):
            self._roll_back(task_id, TaskState.RESTORING, TaskState.SOFT_DELETED)
            raise
        finally:
            self._in_flight.pop(task_id, None)

    # Batch operations

    async def soft_delete_many(self, task_ids: Iterable[str]) -> BatchResult:
        """Soft delete every id concurrently; failures are reported per item."""
        return await self._run_batch(list(task_ids), self.soft_delete, permanent=False)

    async def permanent_delete_many(self, task_ids: Iterable[str]) -> BatchResult:
        """Permanently delete every id concurrently; failures are reported per item."""
        return await self._run_batch(list(task_ids), self.permanent_delete, permanent=True)

    async def sweep_expired(self, now: datetime | None = None) -> list[str]:
        """
        Permanently delete every recycle bin record that has expired.

        Runs to completion; a failure on one record is logged and the record
        stays in the bin for the next sweep.

        Returns:
            Task ids that were evicted
        """
        now = now or self._clock()
        expired = self.recycle_bin.sweep_expired(now)
        if not expired:
            return []

        logger.info("Sweeping %d expired recycle bin record(s)", len(expired))
        result = await self.permanent_delete_many(r.task_id for r in expired)
        for task_id, error in zip(result.failed, result.errors):
            logger.error("Failed to evict expired task %s: %s", task_id, error)

        log_delete_operation("SWEEP", result.succeeded, result.failed)
        return result.succeeded

    async def empty_recycle_bin(self) -> BatchResult:
        """Permanently delete everything currently in the recycle bin."""
        ids = [r.task_id for r in self.recycle_bin.records()]
        result = await self.permanent_delete_many(ids)
        log_delete_operation("EMPTY_BIN", result.succeeded, result.failed)
        return result

    # Internals

    async def _run_batch(
        self,
        task_ids: list[str],
        operation: Callable[[str], Awaitable[object]],
        permanent: bool,
    ) -> BatchResult:
        result = BatchResult(permanent=permanent)
        outcomes = await asyncio.gather(
            *(operation(task_id) for task_id in task_ids),
            return_exceptions=True,
        )
        for task_id, outcome in zip(task_ids, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                result.failed.append(task_id)
                result.errors.append(outcome)
            elif outcome is None or outcome is False:
                # Suppressed because another request already owns the id
                continue
            else:
                result.succeeded.append(task_id)
        if result.failed:
            logger.warning(
                "Batch %s: %d succeeded, %d failed",
                "permanent delete" if permanent else "delete",
                len(result.succeeded), len(result.failed),
            )
        return result

    async def _call_store(
        self,
        operation: str,
        task_id: str,
        call: Callable[[str], Awaitable[None]],
    ) -> None:
        try:
            await call(task_id)
        except (TaskNotFound, asyncio.CancelledError):
            raise
        except Exception as e:
            logger.error("Store %s failed for %s: %s", operation, task_id, e)
            raise StorageFailure(task_id, operation, e) from e

    async def _adopt_orphans(self) -> list[str]:
        adopted = []
        for task in await self.store.list_deleted_tasks():
            if task.id in self.recycle_bin or task.id in self._in_flight:
                continue
            deleted_at = task.deleted_at or self._clock()
            snapshot = task.snapshot()
            snapshot.deleted = False
            snapshot.deleted_at = None
            self.recycle_bin.add(RecycleRecord(
                task_id=task.id,
                task=snapshot,
                deleted_at=deleted_at,
                expires_at=deleted_at + self.retention,
                deleted_by=DEFAULT_DELETED_BY,
            ))
            logger.warning("Task %s was deleted but missing from the recycle bin; re-adopted", task.id)
            adopted.append(task.id)
        if adopted:
            log_delete_operation("ADOPT", adopted)
        return adopted

    def _roll_back(self, task_id: str, transient: TaskState, origin: TaskState) -> None:
        check_transition(task_id, transient, origin)
        logger.info("Task %s rolled back to %s", task_id, origin.value)

    async def _run_exit_animation(self, task_id: str) -> None:
        if self._exit_animation is None:
            return
        try:
            await self._exit_animation(task_id)
        except Exception as e:
            logger.warning("Exit animation failed for %s, continuing: %s", task_id, e)

    def _record(
        self,
        task_id: str,
        task: Task,
        from_state: TaskState,
        to_state: TaskState,
        permanent: bool = False,
    ) -> None:
        self.history.append(HistoryEntry(
            task_id=task_id,
            summary=task.title,
            from_state=from_state,
            to_state=to_state,
            timestamp=self._clock(),
            permanent=permanent,
        ))
