"""Publish/subscribe notification of completed lifecycle transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from src.core.models import RecycleRecord, Task

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """The fixed set of lifecycle events."""

    TASK_DELETED = "taskDeleted"
    TASK_PERMANENTLY_DELETED = "taskPermanentlyDeleted"
    TASK_RESTORED = "taskRestored"


@dataclass(frozen=True)
class DeletionEvent:
    """Payload delivered to subscribers."""

    kind: EventKind
    task_id: str
    task: Task
    recycle_record: Optional[RecycleRecord] = None
    is_permanent: bool = False


Subscriber = Callable[[DeletionEvent], None]


class EventNotifier:
    """
    Synchronous, best-effort broadcast to subscribers.

    A subscriber that raises is logged and skipped; delivery to the remaining
    subscribers continues and the publisher never sees the error.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[Optional[EventKind], Subscriber]] = []

    def subscribe(
        self, callback: Subscriber, kind: Optional[EventKind] = None
    ) -> Callable[[], None]:
        """
        Register a callback for one event kind, or for all kinds.

        Returns:
            A function that removes the subscription; calling it twice is harmless
        """
        entry = (kind, callback)
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(entry)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, event: DeletionEvent) -> int:
        """
        Deliver an event to every matching subscriber.

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        # Copy so callbacks may unsubscribe during delivery
        for kind, callback in list(self._subscribers):
            if kind is not None and kind is not event.kind:
                continue
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Subscriber %r failed handling %s for %s",
                    callback, event.kind.value, event.task_id,
                )
        return delivered
