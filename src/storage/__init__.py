"""Task and recycle bin persistence package for TodoKeeper."""

from src.storage.key_value import JsonKeyValueStore
from src.storage.task_store import TaskStore, JsonTaskStore

__all__ = [
    "JsonKeyValueStore",
    "TaskStore",
    "JsonTaskStore",
]
