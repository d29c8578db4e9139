"""Main toolbar widget for TodoKeeper.

Provides Delete, Delete Forever, Restore and Empty Recycle Bin actions.
"""

from __future__ import annotations

from PyQt6.QtWidgets import QToolBar, QWidget
from PyQt6.QtGui import QAction
from PyQt6.QtCore import pyqtSignal


class MainToolbar(QToolBar):
    """Toolbar with the delete lifecycle actions."""

    delete_triggered = pyqtSignal()
    permanent_delete_triggered = pyqtSignal()
    restore_triggered = pyqtSignal()
    empty_bin_triggered = pyqtSignal()

    def __init__(self, parent: QWidget | None = None) -> None:
        """Initialize the MainToolbar."""
        super().__init__(parent)
        self._setup_ui()

    def _setup_ui(self) -> None:
        """Set up the toolbar UI."""
        self.setMovable(False)
        self.setFloatable(False)

        self._delete_action = QAction("Delete", self)
        self._delete_action.setToolTip("Move selected tasks to the recycle bin (Delete)")
        self._delete_action.setEnabled(False)
        self._delete_action.triggered.connect(self.delete_triggered.emit)
        self.addAction(self._delete_action)

        self._permanent_action = QAction("Delete Forever", self)
        self._permanent_action.setToolTip("Permanently delete selected tasks (Ctrl+Delete)")
        self._permanent_action.setEnabled(False)
        self._permanent_action.triggered.connect(self.permanent_delete_triggered.emit)
        self.addAction(self._permanent_action)

        self.addSeparator()

        self._restore_action = QAction("Restore", self)
        self._restore_action.setToolTip("Restore selected tasks from the recycle bin")
        self._restore_action.setEnabled(False)
        self._restore_action.triggered.connect(self.restore_triggered.emit)
        self.addAction(self._restore_action)

        self._empty_bin_action = QAction("Empty Recycle Bin", self)
        self._empty_bin_action.setToolTip("Permanently delete everything in the recycle bin")
        self._empty_bin_action.setEnabled(False)
        self._empty_bin_action.triggered.connect(self.empty_bin_triggered.emit)
        self.addAction(self._empty_bin_action)

    @property
    def delete_action(self) -> QAction:
        """Return the delete action."""
        return self._delete_action

    @property
    def restore_action(self) -> QAction:
        """Return the restore action."""
        return self._restore_action

    def set_delete_enabled(self, enabled: bool) -> None:
        """Enable or disable the delete actions."""
        self._delete_action.setEnabled(enabled)
        self._permanent_action.setEnabled(enabled)

    def set_restore_enabled(self, enabled: bool) -> None:
        """Enable or disable the restore action."""
        self._restore_action.setEnabled(enabled)

    def set_empty_bin_enabled(self, enabled: bool) -> None:
        """Enable or disable the empty recycle bin action."""
        self._empty_bin_action.setEnabled(enabled)

    def set_all_enabled(self, enabled: bool) -> None:
        """Enable or disable all actions."""
        for action in (
            self._delete_action,
            self._permanent_action,
            self._restore_action,
            self._empty_bin_action,
        ):
            action.setEnabled(enabled)
