"""User interface package for TodoKeeper."""

from src.ui.app import create_application
from src.ui.main_window import MainWindow
from src.ui.shortcuts import ShortcutAction, resolve_shortcut

__all__ = [
    "create_application",
    "MainWindow",
    "ShortcutAction",
    "resolve_shortcut",
]
