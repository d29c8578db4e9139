"""Background deletion service for TodoKeeper.

Runs the deletion coordinator on an asyncio event loop in a separate thread so
storage I/O, countdowns and exit animations never block the UI. Results and
lifecycle events come back to the UI thread as queued Qt signals.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Awaitable, Callable, Iterable

from PyQt6.QtCore import QThread, pyqtSignal

from src.core.models import BatchResult, CancelReason, Decision
from src.deletion.confirmation import PendingConfirmation
from src.deletion.coordinator import DeletionCoordinator
from src.deletion.events import DeletionEvent, EventKind
from src.deletion.notifications import (
    failure_notification,
    restored_notification,
    summarize_batch,
)

logger = logging.getLogger(__name__)

LOOP_START_TIMEOUT = 5.0


class DeletionService(QThread):
    """
    Hosts the deletion coordinator's event loop.

    All coordinator state is touched from the loop thread only. The UI calls
    the public methods below, which schedule work onto the loop.
    """

    started_up = pyqtSignal(list)  # task ids evicted by the startup sweep
    task_deleted = pyqtSignal(object)  # DeletionEvent
    task_restored = pyqtSignal(object)  # DeletionEvent
    task_permanently_deleted = pyqtSignal(object)  # DeletionEvent
    exit_animation = pyqtSignal(str)  # task id about to disappear
    request_finished = pyqtSignal(object)  # BatchResult
    notification = pyqtSignal(object)  # Notification
    error = pyqtSignal(str, str)  # (error_type, error_message)
    prompt_opened = pyqtSignal(object)  # PendingConfirmation
    prompt_tick = pyqtSignal(object, int)  # (PendingConfirmation, seconds remaining)
    prompt_closed = pyqtSignal(object, object)  # (PendingConfirmation, Decision)
    snapshot_ready = pyqtSignal(list, list)  # (live tasks, recycle records)

    def __init__(
        self,
        coordinator: DeletionCoordinator,
        animation_ms: int | None = None,
        parent=None,
    ) -> None:
        """
        Initialize the DeletionService.

        Args:
            coordinator: Coordinator to run; it must not be used from other threads
            animation_ms: Exit animation length. Uses the coordinator settings if None.
            parent: Parent QObject
        """
        super().__init__(parent)
        self._coordinator = coordinator
        self._animation_ms = (
            coordinator.settings.animation_duration_ms if animation_ms is None else animation_ms
        )
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_ready = threading.Event()
        self._unsubscribe: Callable[[], None] | None = None

        coordinator.set_exit_animation(self._play_exit_animation)

    @property
    def coordinator(self) -> DeletionCoordinator:
        return self._coordinator

    def run(self) -> None:
        """Run the event loop until stop() is called."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop

        self._unsubscribe = self._coordinator.notifier.subscribe(self._on_event)
        self._coordinator.confirmation.add_listener(self)

        try:
            swept = loop.run_until_complete(self._coordinator.start())
            self.started_up.emit(swept)
        except Exception as e:
            logger.exception("Deletion service startup failed")
            self.error.emit(type(e).__name__, str(e))

        self._loop_ready.set()
        try:
            loop.run_forever()
        finally:
            self._shutdown(loop)

    def stop(self) -> None:
        """Stop the loop and wait for the thread to finish."""
        if self._loop is not None and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        self.wait()

    def _shutdown(self, loop: asyncio.AbstractEventLoop) -> None:
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._coordinator.confirmation.remove_listener(self)
        loop.close()
        self._loop = None
        self._loop_ready.clear()
        logger.debug("Deletion service stopped")

    # UI entry points (callable from the UI thread)

    def request_delete(
        self,
        task_ids: Iterable[str],
        permanent: bool = False,
        skip_confirmation: bool = False,
    ) -> Future:
        ids = list(task_ids)
        return self._submit(
            lambda: self._coordinator.request_delete(
                ids, permanent=permanent, skip_confirmation=skip_confirmation
            ),
            on_result=self._on_batch_result,
            action="Delete",
        )

    def restore(self, task_id: str) -> Future:
        return self._submit(
            lambda: self._coordinator.restore(task_id),
            on_result=self._on_restored,
            action="Restore",
        )

    def empty_recycle_bin(self) -> Future:
        return self._submit(
            self._coordinator.empty_recycle_bin,
            on_result=self._on_batch_result,
            action="Empty recycle bin",
        )

    def add_task(self, title: str) -> Future:
        return self._submit(
            lambda: self._add_task(title),
            on_result=lambda _task: self.refresh(),
            action="Add task",
        )

    def refresh(self) -> Future:
        """Emit snapshot_ready with the current live tasks and recycle records."""
        return self._submit(
            self._snapshot,
            on_result=lambda snapshot: self.snapshot_ready.emit(*snapshot),
            action="Refresh",
        )

    def sweep_expired(self) -> Future:
        return self._submit(self._coordinator.sweep_expired, action="Sweep")

    def confirm_prompt(self) -> None:
        self._call_soon(self._coordinator.confirmation.confirm_active)

    def cancel_prompt(self, reason: CancelReason = CancelReason.ESCAPE) -> None:
        self._call_soon(self._coordinator.confirmation.cancel_active, reason)

    # Confirmation listener (runs on the loop thread)

    def on_open(self, pending: PendingConfirmation) -> None:
        self.prompt_opened.emit(pending)

    def on_tick(self, pending: PendingConfirmation, remaining: int) -> None:
        self.prompt_tick.emit(pending, remaining)

    def on_close(self, pending: PendingConfirmation, decision: Decision) -> None:
        self.prompt_closed.emit(pending, decision)

    # Internals

    def _on_event(self, event: DeletionEvent) -> None:
        if event.kind is EventKind.TASK_DELETED:
            self.task_deleted.emit(event)
        elif event.kind is EventKind.TASK_RESTORED:
            self.task_restored.emit(event)
        elif event.kind is EventKind.TASK_PERMANENTLY_DELETED:
            self.task_permanently_deleted.emit(event)

    def _on_batch_result(self, result: BatchResult) -> None:
        self.request_finished.emit(result)
        for notification in summarize_batch(result):
            self.notification.emit(notification)

    def _on_restored(self, task) -> None:
        # None means another request owned the task
        if task is not None:
            self.notification.emit(restored_notification())

    async def _add_task(self, title: str):
        return self._coordinator.store.add_task(title)

    async def _snapshot(self) -> tuple[list, list]:
        # Read on the loop thread so the UI never iterates state being mutated
        tasks = self._coordinator.store.list_tasks()
        return tasks, self._coordinator.recycle_bin.records()

    async def _play_exit_animation(self, task_id: str) -> None:
        self.exit_animation.emit(task_id)
        if self._animation_ms > 0:
            await asyncio.sleep(self._animation_ms / 1000)

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if not self._loop_ready.wait(LOOP_START_TIMEOUT) or self._loop is None:
            raise RuntimeError("Deletion service is not running")
        return self._loop

    def _call_soon(self, callback: Callable, *args) -> None:
        self._require_loop().call_soon_threadsafe(callback, *args)

    def _submit(
        self,
        factory: Callable[[], Awaitable],
        on_result: Callable[[object], object] | None = None,
        action: str = "Delete",
    ) -> Future:
        loop = self._require_loop()
        future = asyncio.run_coroutine_threadsafe(factory(), loop)

        def _done(f: Future) -> None:
            if f.cancelled():
                return
            exc = f.exception()
            if exc is not None:
                logger.error("%s failed: %s", action, exc)
                self.error.emit(type(exc).__name__, str(exc))
                self.notification.emit(failure_notification(exc, action))
                return
            if on_result is not None:
                on_result(f.result())

        future.add_done_callback(_done)
        return future
