"""Cancellable, time-gated confirmation of delete requests.

Only one prompt is active at a time. When a prompt carries a timeout, its
confirm action stays disabled until a once-per-second countdown reaches zero.
Cancelling is possible at any point and always wins over a countdown that has
not finished.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Protocol

from src.core.models import CancelReason, ConfirmationRequest, Decision

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

TICK_SECONDS = 1.0


@dataclass(frozen=True)
class ConfirmationMessage:
    """User-facing wording for a prompt."""

    title: str
    body: str
    note: str
    confirm_label: str


def build_message(count: int, is_permanent: bool, retention_days: int = 30) -> ConfirmationMessage:
    """
    Build prompt wording for ``count`` targets.

    Args:
        count: Number of tasks the prompt covers
        is_permanent: Permanent delete instead of moving to the recycle bin
        retention_days: Recycle bin retention, quoted in the soft-delete note
    """
    if count == 1:
        target = "this task"
    else:
        target = f"these {count} tasks"

    if is_permanent:
        return ConfirmationMessage(
            title="Confirm Permanent Delete",
            body=f"Are you sure you want to permanently delete {target}?",
            note="This action cannot be undone.",
            confirm_label="Delete Forever",
        )
    return ConfirmationMessage(
        title="Confirm Delete",
        body=f"Are you sure you want to delete {target}?",
        note=f"Deleted tasks move to the recycle bin and can be restored within {retention_days} days.",
        confirm_label="Delete",
    )


class PendingConfirmation:
    """
    One unresolved confirm/deny decision.

    Resolution happens exactly once. ``confirm`` is refused while the
    countdown is running; ``cancel`` is accepted until the decision is made.
    """

    def __init__(
        self,
        request: ConfirmationRequest,
        message: ConfirmationMessage,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.request = request
        self.message = message
        self.loop = loop
        self._remaining = math.ceil(request.timeout_ms / 1000)
        self._future: asyncio.Future[Decision] = loop.create_future()
        self._countdown: Optional[asyncio.Task] = None
        self.cancel_reason: Optional[CancelReason] = None

    @property
    def remaining(self) -> int:
        """Seconds left before confirm becomes available."""
        return self._remaining

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def decision(self) -> Optional[Decision]:
        return self._future.result() if self._future.done() else None

    @property
    def can_confirm(self) -> bool:
        return not self.done and self._remaining <= 0

    def confirm(self) -> bool:
        """
        Approve the request.

        Returns:
            True if this call resolved the prompt as confirmed
        """
        if not self.can_confirm:
            if not self.done:
                logger.debug("Confirm ignored: %d second(s) remaining", self._remaining)
            return False
        self._future.set_result(Decision.CONFIRMED)
        self._stop_countdown()
        return True

    def cancel(self, reason: CancelReason = CancelReason.BUTTON) -> bool:
        """
        Deny the request. Idempotent.

        Returns:
            True if this call resolved the prompt as cancelled
        """
        if self.done:
            return False
        self.cancel_reason = reason
        self._future.set_result(Decision.CANCELLED)
        self._stop_countdown()
        logger.debug("Confirmation cancelled (%s)", reason.value)
        return True

    async def wait(self) -> Decision:
        # Shielded so a cancelled waiter leaves the decision for cancel() to set
        return await asyncio.shield(self._future)

    def _tick(self) -> int:
        if not self.done and self._remaining > 0:
            self._remaining -= 1
        return self._remaining

    def _start_countdown(self, coro: Awaitable[None]) -> None:
        self._countdown = self.loop.create_task(coro)

    def _stop_countdown(self) -> None:
        if self._countdown is not None and not self._countdown.done():
            self._countdown.cancel()


class ConfirmationListener(Protocol):
    """Receives prompt lifecycle callbacks, e.g. to drive a dialog."""

    def on_open(self, pending: PendingConfirmation) -> None: ...

    def on_tick(self, pending: PendingConfirmation, remaining: int) -> None: ...

    def on_close(self, pending: PendingConfirmation, decision: Decision) -> None: ...


class ConfirmationProtocol:
    """Presents a single pending decision at a time."""

    def __init__(
        self,
        default_timeout_ms: int = 3000,
        retention_days: int = 30,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the ConfirmationProtocol.

        Args:
            default_timeout_ms: Countdown used when a prompt does not give one
            retention_days: Retention quoted in soft-delete wording
            sleep: Awaitable sleep used for countdown ticks
        """
        self.default_timeout_ms = default_timeout_ms
        self.retention_days = retention_days
        self._sleep = sleep
        self._active: Optional[PendingConfirmation] = None
        self._listeners: list[ConfirmationListener] = []

    @property
    def active(self) -> Optional[PendingConfirmation]:
        """The unresolved prompt, if any."""
        if self._active is not None and self._active.done:
            return None
        return self._active

    def add_listener(self, listener: ConfirmationListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ConfirmationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def confirm_active(self) -> bool:
        """Confirm the open prompt if its countdown has finished."""
        pending = self.active
        return pending.confirm() if pending else False

    def cancel_active(self, reason: CancelReason = CancelReason.ESCAPE) -> bool:
        """Dismiss the open prompt, if any."""
        pending = self.active
        return pending.cancel(reason) if pending else False

    async def prompt(
        self,
        task_ids: Iterable[str],
        is_permanent: bool = False,
        timeout_ms: Optional[int] = None,
    ) -> Decision:
        """
        Ask for a confirm/deny decision on ``task_ids``.

        A prompt that is still open is cancelled first. If the awaiting task is
        itself cancelled, the prompt resolves as cancelled before the
        cancellation propagates.
        """
        previous = self.active
        if previous is not None:
            previous.cancel(CancelReason.SUPERSEDED)

        request = ConfirmationRequest(
            target_ids=frozenset(task_ids),
            is_permanent=is_permanent,
            timeout_ms=self.default_timeout_ms if timeout_ms is None else timeout_ms,
        )
        message = build_message(request.count, is_permanent, self.retention_days)
        pending = PendingConfirmation(request, message, asyncio.get_running_loop())
        self._active = pending

        self._notify("on_open", pending)
        if pending.remaining > 0:
            pending._start_countdown(self._run_countdown(pending))

        try:
            decision = await pending.wait()
        except asyncio.CancelledError:
            pending.cancel(CancelReason.CLOSED)
            raise
        finally:
            pending._stop_countdown()
            if self._active is pending:
                self._active = None
            if pending.done:
                self._notify("on_close", pending, pending.decision)

        logger.info(
            "Confirmation for %d task(s) %s",
            request.count, decision.value,
        )
        return decision

    async def _run_countdown(self, pending: PendingConfirmation) -> None:
        while not pending.done and pending.remaining > 0:
            await self._sleep(TICK_SECONDS)
            if pending.done:
                return
            remaining = pending._tick()
            self._notify("on_tick", pending, remaining)

    def _notify(self, method: str, *args) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, method)(*args)
            except Exception:
                logger.exception("Confirmation listener failed in %s", method)
