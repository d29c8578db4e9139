"""Background worker threads package for TodoKeeper."""

from src.ui.workers.deletion_worker import DeletionService

__all__ = [
    "DeletionService",
]
