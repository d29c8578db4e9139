"""Per-task deletion state machine.

    LIVE --[delete]--> DELETING --[stored]--> SOFT_DELETED
    SOFT_DELETED --[restore]--> RESTORING --[stored]--> LIVE
    SOFT_DELETED --[purge]--> PERMANENT_DELETING --[stored]--> GONE
    LIVE --[purge]--> PERMANENT_DELETING

A failed storage call rolls a transient state back to where it started.
"""

from __future__ import annotations

import logging

from src.core.models import TaskState

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    pass


TRANSIENT_STATES = frozenset({
    TaskState.DELETING,
    TaskState.RESTORING,
    TaskState.PERMANENT_DELETING,
})

VALID_TRANSITIONS: dict[TaskState, set[TaskState]] = {
    TaskState.LIVE: {TaskState.DELETING, TaskState.PERMANENT_DELETING},
    TaskState.DELETING: {TaskState.SOFT_DELETED, TaskState.LIVE},
    TaskState.SOFT_DELETED: {TaskState.RESTORING, TaskState.PERMANENT_DELETING},
    TaskState.RESTORING: {TaskState.LIVE, TaskState.SOFT_DELETED},
    TaskState.PERMANENT_DELETING: {TaskState.GONE, TaskState.SOFT_DELETED, TaskState.LIVE},
    TaskState.GONE: set(),
}


def can_transition(old_state: TaskState, new_state: TaskState) -> bool:
    """Return True if ``old_state -> new_state`` is a legal transition."""
    return new_state in VALID_TRANSITIONS.get(old_state, set())


def check_transition(task_id: str, old_state: TaskState, new_state: TaskState) -> None:
    """
    Validate a transition for one task.

    Raises:
        InvalidTransitionError: If the transition is not valid
    """
    if not can_transition(old_state, new_state):
        msg = f"Invalid transition for {task_id}: {old_state.value} -> {new_state.value}"
        logger.warning(msg)
        raise InvalidTransitionError(msg)
    logger.debug("Task %s: %s -> %s", task_id, old_state.value, new_state.value)
