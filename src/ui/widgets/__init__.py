"""Custom widgets package for TodoKeeper."""

from src.ui.widgets.toolbar import MainToolbar
from src.ui.widgets.status_bar import TaskStatusBar

__all__ = [
    "MainToolbar",
    "TaskStatusBar",
]
