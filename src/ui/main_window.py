"""Main window for TodoKeeper.

Task list, recycle bin and the delete confirmation flow.
"""

from __future__ import annotations

import logging

from PyQt6.QtWidgets import (
    QMainWindow,
    QWidget,
    QHBoxLayout,
    QVBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QAbstractItemView,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont, QKeyEvent

from src.core.constants import APP_NAME, APP_VERSION
from src.core.models import CancelReason, Decision, RecycleRecord, Task
from src.deletion.confirmation import PendingConfirmation
from src.deletion.events import DeletionEvent
from src.ui.dialogs import DeleteConfirmationDialog
from src.ui.shortcuts import ShortcutAction, resolve_shortcut
from src.ui.widgets import MainToolbar, TaskStatusBar
from src.ui.workers import DeletionService

logger = logging.getLogger(__name__)

ID_ROLE = Qt.ItemDataRole.UserRole


class MainWindow(QMainWindow):
    """
    Main application window.

    Layout:
        +--------------------------------------------------+
        | [Delete] [Delete Forever] | [Restore] [Empty Bin] |
        +--------------------------------------------------+
        | [New task___________]   |                        |
        | Tasks                   | Recycle Bin            |
        | - Write report          | - Old task (expires..) |
        +--------------------------------------------------+
        | Task moved to recycle bin | 3 tasks | 1 in bin    |
        +--------------------------------------------------+
    """

    def __init__(self, service: DeletionService, parent: QWidget | None = None) -> None:
        """
        Initialize the MainWindow.

        Args:
            service: Running deletion service
            parent: Parent widget
        """
        super().__init__(parent)
        self._service = service
        self._dialog: DeleteConfirmationDialog | None = None
        self._dialog_pending: PendingConfirmation | None = None
        self._fading: set[str] = set()

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self) -> None:
        """Set up the main window UI."""
        self.setWindowTitle(f"{APP_NAME} v{APP_VERSION}")
        self.setMinimumSize(720, 480)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(8, 8, 8, 8)
        main_layout.setSpacing(8)

        self._toolbar = MainToolbar(self)
        self.addToolBar(self._toolbar)

        content_layout = QHBoxLayout()
        content_layout.setSpacing(8)

        # Left pane: live tasks
        task_pane = QVBoxLayout()
        self._new_task_edit = QLineEdit()
        self._new_task_edit.setPlaceholderText("Add a task and press Enter...")
        task_pane.addWidget(self._new_task_edit)
        task_pane.addWidget(QLabel("Tasks"))
        self._task_list = QListWidget()
        self._task_list.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)
        task_pane.addWidget(self._task_list)
        content_layout.addLayout(task_pane, stretch=1)

        # Right pane: recycle bin
        bin_pane = QVBoxLayout()
        bin_pane.addWidget(QLabel("Recycle Bin"))
        self._bin_list = QListWidget()
        self._bin_list.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)
        bin_pane.addWidget(self._bin_list)
        content_layout.addLayout(bin_pane, stretch=1)

        main_layout.addLayout(content_layout)

        self._status_bar = TaskStatusBar(self)
        self.setStatusBar(self._status_bar)

    def _connect_signals(self) -> None:
        """Connect signals and slots."""
        self._toolbar.delete_triggered.connect(lambda: self._delete_selected(permanent=False))
        self._toolbar.permanent_delete_triggered.connect(self._on_permanent_delete_clicked)
        self._toolbar.restore_triggered.connect(self._restore_selected)
        self._toolbar.empty_bin_triggered.connect(self._service.empty_recycle_bin)

        self._new_task_edit.returnPressed.connect(self._on_add_task)
        self._task_list.itemSelectionChanged.connect(self._update_actions)
        self._bin_list.itemSelectionChanged.connect(self._update_actions)

        service = self._service
        service.snapshot_ready.connect(self._on_snapshot)
        service.started_up.connect(self._on_started_up)
        service.task_deleted.connect(self._on_lifecycle_event)
        service.task_restored.connect(self._on_lifecycle_event)
        service.task_permanently_deleted.connect(self._on_lifecycle_event)
        service.exit_animation.connect(self._on_exit_animation)
        service.notification.connect(self._status_bar.show_notification)
        service.error.connect(self._on_service_error)
        service.prompt_opened.connect(self._on_prompt_opened)
        service.prompt_tick.connect(self._on_prompt_tick)
        service.prompt_closed.connect(self._on_prompt_closed)

    @property
    def task_list(self) -> QListWidget:
        return self._task_list

    @property
    def bin_list(self) -> QListWidget:
        return self._bin_list

    @property
    def status_bar(self) -> TaskStatusBar:
        return self._status_bar

    @property
    def active_dialog(self) -> DeleteConfirmationDialog | None:
        return self._dialog

    # === Selection ===

    def _selected_ids(self, widget: QListWidget) -> list[str]:
        return [item.data(ID_ROLE) for item in widget.selectedItems()]

    def _update_actions(self) -> None:
        self._toolbar.set_delete_enabled(
            bool(self._task_list.selectedItems()) or bool(self._bin_list.selectedItems())
        )
        self._toolbar.set_restore_enabled(bool(self._bin_list.selectedItems()))
        self._toolbar.set_empty_bin_enabled(self._bin_list.count() > 0)

    # === Keyboard ===

    def keyPressEvent(self, event: QKeyEvent) -> None:
        action = resolve_shortcut(event.key(), event.modifiers())
        if action is ShortcutAction.DELETE:
            self._delete_selected(permanent=False)
        elif action is ShortcutAction.PERMANENT_DELETE:
            self._delete_selected(permanent=True)
        elif action is ShortcutAction.QUICK_DELETE:
            self._delete_selected(permanent=False, skip_confirmation=True)
        elif action is ShortcutAction.CANCEL_PROMPT and self._dialog is not None:
            self._service.cancel_prompt(CancelReason.ESCAPE)
        else:
            super().keyPressEvent(event)

    # === Actions ===

    def _on_add_task(self) -> None:
        title = self._new_task_edit.text().strip()
        if not title:
            return
        self._new_task_edit.clear()
        self._service.add_task(title)

    def _on_permanent_delete_clicked(self) -> None:
        self._delete_selected(permanent=True)

    def _delete_selected(self, permanent: bool, skip_confirmation: bool = False) -> None:
        """Delete the selection; items selected in the recycle bin are always permanent."""
        task_ids = self._selected_ids(self._task_list)
        bin_ids = self._selected_ids(self._bin_list)
        if bin_ids and not task_ids:
            task_ids, permanent = bin_ids, True
        elif permanent:
            task_ids = task_ids + bin_ids
        if not task_ids:
            return
        self._service.request_delete(
            task_ids, permanent=permanent, skip_confirmation=skip_confirmation
        )

    def _restore_selected(self) -> None:
        for task_id in self._selected_ids(self._bin_list):
            self._service.restore(task_id)

    # === Service signals ===

    def _on_started_up(self, swept: list[str]) -> None:
        if swept:
            self._status_bar.show_message(f"{len(swept)} expired task(s) removed from recycle bin")
        self._service.refresh()

    def _on_lifecycle_event(self, event: DeletionEvent) -> None:
        self._fading.discard(event.task_id)
        self._service.refresh()

    def _on_exit_animation(self, task_id: str) -> None:
        self._fading.add(task_id)
        for row in range(self._task_list.count()):
            item = self._task_list.item(row)
            if item.data(ID_ROLE) == task_id:
                font = item.font()
                font.setStrikeOut(True)
                item.setFont(font)
                item.setForeground(Qt.GlobalColor.gray)

    def _on_snapshot(self, tasks: list[Task], records: list[RecycleRecord]) -> None:
        self._task_list.clear()
        for task in tasks:
            item = QListWidgetItem(task.title)
            item.setData(ID_ROLE, task.id)
            if task.completed:
                font = QFont()
                font.setItalic(True)
                item.setFont(font)
            self._task_list.addItem(item)

        self._bin_list.clear()
        for record in records:
            expires = record.expires_at.astimezone().strftime("%Y-%m-%d %H:%M")
            item = QListWidgetItem(f"{record.task.title} (expires {expires})")
            item.setData(ID_ROLE, record.task_id)
            self._bin_list.addItem(item)

        self._status_bar.set_counts(len(tasks), len(records))
        self._update_actions()

    def _on_service_error(self, error_type: str, error_message: str) -> None:
        logger.error("Deletion service error: %s: %s", error_type, error_message)

    # === Confirmation prompt ===

    def _on_prompt_opened(self, pending: PendingConfirmation) -> None:
        if self._dialog is not None:
            self._dialog.close_from_service()
        self._dialog = DeleteConfirmationDialog(
            pending.message,
            pending.remaining,
            on_confirm=self._service.confirm_prompt,
            on_cancel=self._service.cancel_prompt,
            is_permanent=pending.request.is_permanent,
            parent=self,
        )
        self._dialog_pending = pending
        self._dialog.show()

    def _on_prompt_tick(self, pending: PendingConfirmation, remaining: int) -> None:
        if self._dialog is not None and pending is self._dialog_pending:
            self._dialog.set_remaining(remaining)

    def _on_prompt_closed(self, pending: PendingConfirmation, decision: Decision) -> None:
        logger.debug("Confirmation closed: %s", decision.value)
        # A superseded prompt closes after its replacement has opened
        if self._dialog is None or pending is not self._dialog_pending:
            return
        if not self._dialog.resolved:
            self._dialog.close_from_service()
        self._dialog = None
        self._dialog_pending = None

    def closeEvent(self, event) -> None:
        """Cancel any open prompt before the window goes away."""
        if self._dialog is not None and not self._dialog.resolved:
            self._service.cancel_prompt(CancelReason.CLOSED)
        super().closeEvent(event)
