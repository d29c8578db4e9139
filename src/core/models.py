"""Core data models for TodoKeeper."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Task:
    """A to-do item as held by the task store."""

    title: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    description: str = ""
    completed: bool = False
    priority: str = "medium"
    category: str = "general"
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    due_date: Optional[datetime] = None
    deleted: bool = False  # Soft-delete flag
    deleted_at: Optional[datetime] = None

    @property
    def is_live(self) -> bool:
        """Return True if the task has not been soft-deleted."""
        return not self.deleted

    def snapshot(self) -> Task:
        """Return a deep copy detached from the store's instance."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority,
            "category": self.category,
            "tags": list(self.tags),
            "created_at": _to_iso(self.created_at),
            "updated_at": _to_iso(self.updated_at),
            "due_date": _to_iso(self.due_date),
            "deleted": self.deleted,
            "deleted_at": _to_iso(self.deleted_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        """Create instance from dictionary."""
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            completed=bool(data.get("completed", False)),
            priority=data.get("priority", "medium"),
            category=data.get("category", "general"),
            tags=list(data.get("tags", [])),
            created_at=_from_iso(data.get("created_at")) or utc_now(),
            updated_at=_from_iso(data.get("updated_at")) or utc_now(),
            due_date=_from_iso(data.get("due_date")),
            deleted=bool(data.get("deleted", False)),
            deleted_at=_from_iso(data.get("deleted_at")),
        )


class TaskState(Enum):
    """Deletion lifecycle state of a single task."""

    LIVE = "live"
    DELETING = "deleting"
    SOFT_DELETED = "soft_deleted"
    RESTORING = "restoring"
    PERMANENT_DELETING = "permanent_deleting"
    GONE = "gone"


@dataclass(frozen=True)
class RecycleRecord:
    """A soft-deleted task held in the recycle bin until restore or expiry."""

    task_id: str
    task: Task  # Snapshot taken at delete time
    deleted_at: datetime
    expires_at: datetime
    deleted_by: str = "user"

    def __post_init__(self) -> None:
        if self.expires_at <= self.deleted_at:
            raise ValueError(
                f"expires_at ({self.expires_at}) must be after deleted_at ({self.deleted_at})"
            )

    def is_expired(self, now: datetime) -> bool:
        """Return True if the record is due for eviction at ``now``."""
        return self.expires_at <= now

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "task_id": self.task_id,
            "task": self.task.to_dict(),
            "deleted_at": _to_iso(self.deleted_at),
            "expires_at": _to_iso(self.expires_at),
            "deleted_by": self.deleted_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecycleRecord:
        """Create instance from dictionary."""
        deleted_at = _from_iso(data["deleted_at"])
        expires_at = _from_iso(data["expires_at"])
        if deleted_at is None or expires_at is None:
            raise ValueError("RecycleRecord requires deleted_at and expires_at")
        return cls(
            task_id=data["task_id"],
            task=Task.from_dict(data["task"]),
            deleted_at=deleted_at,
            expires_at=expires_at,
            deleted_by=data.get("deleted_by", "user"),
        )


@dataclass(frozen=True)
class HistoryEntry:
    """One audit entry for a task's deletion lifecycle."""

    task_id: str
    summary: str
    from_state: TaskState
    to_state: TaskState
    timestamp: datetime = field(default_factory=utc_now)
    permanent: bool = False


class Decision(Enum):
    """Outcome of a confirmation prompt."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class CancelReason(Enum):
    """Why a confirmation prompt ended without a confirm."""

    BUTTON = "button"
    DISMISSED = "dismissed"
    ESCAPE = "escape"
    SUPERSEDED = "superseded"
    CLOSED = "closed"


@dataclass(frozen=True)
class ConfirmationRequest:
    """A single pending confirm/deny decision shown to the user."""

    target_ids: frozenset[str]
    is_permanent: bool = False
    timeout_ms: int = 0
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.target_ids:
            raise ValueError("ConfirmationRequest requires at least one target")
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must be non-negative")

    @property
    def count(self) -> int:
        return len(self.target_ids)


@dataclass
class BatchResult:
    """Aggregate outcome of a batch delete, permanent delete or restore."""

    permanent: bool = False
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        """Return True if the request ran and no item failed."""
        return not self.cancelled and not self.failed

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)
