"""Delete confirmation dialog for TodoKeeper.

Shows what will be deleted and keeps the confirm button disabled until the
countdown driven by the confirmation protocol reaches zero.
"""

from __future__ import annotations

from typing import Callable

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from src.core.models import CancelReason
from src.deletion.confirmation import ConfirmationMessage


class DeleteConfirmationDialog(QDialog):
    """
    Dialog to confirm a soft or permanent delete.

    The dialog reports exactly one outcome: ``on_confirm`` after an explicit
    confirm, or ``on_cancel`` for any other way it is closed.
    """

    def __init__(
        self,
        message: ConfirmationMessage,
        remaining: int,
        on_confirm: Callable[[], None],
        on_cancel: Callable[[CancelReason], None],
        is_permanent: bool = False,
        parent: QWidget | None = None,
    ) -> None:
        """
        Initialize the confirmation dialog.

        Args:
            message: Prompt wording
            remaining: Seconds before confirm becomes available
            on_confirm: Called once when the user confirms
            on_cancel: Called once with the reason when the dialog closes otherwise
            is_permanent: Use destructive styling for the confirm button
            parent: Parent widget
        """
        super().__init__(parent)
        self._message = message
        self._remaining = remaining
        self._on_confirm = on_confirm
        self._on_cancel = on_cancel
        self._is_permanent = is_permanent
        self._resolved = False
        self._cancel_reason = CancelReason.DISMISSED
        self._setup_ui()
        self.set_remaining(remaining)

    def _setup_ui(self) -> None:
        """Set up the dialog UI."""
        self.setWindowTitle(self._message.title)
        self.setMinimumWidth(400)
        self.setModal(True)

        layout = QVBoxLayout(self)

        body_label = QLabel(self._message.body)
        body_label.setStyleSheet("font-weight: bold;")
        body_label.setWordWrap(True)
        layout.addWidget(body_label)

        note_label = QLabel(self._message.note)
        note_label.setWordWrap(True)
        if self._is_permanent:
            note_label.setStyleSheet("color: #d32f2f;")
        else:
            note_label.setStyleSheet("color: gray; font-style: italic;")
        layout.addWidget(note_label)

        self._countdown_label = QLabel()
        layout.addWidget(self._countdown_label)

        # Buttons
        button_layout = QHBoxLayout()
        button_layout.addStretch()

        self._cancel_btn = QPushButton("Cancel")
        self._cancel_btn.clicked.connect(self._on_cancel_clicked)
        button_layout.addWidget(self._cancel_btn)

        self._confirm_btn = QPushButton(self._message.confirm_label)
        if self._is_permanent:
            self._confirm_btn.setStyleSheet("background-color: #d32f2f; color: white;")
        self._confirm_btn.clicked.connect(self._on_confirm_clicked)
        button_layout.addWidget(self._confirm_btn)

        layout.addLayout(button_layout)

        # Focus starts on Cancel so Enter never confirms by accident
        self._cancel_btn.setDefault(True)
        self._cancel_btn.setFocus()

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def confirm_enabled(self) -> bool:
        return self._confirm_btn.isEnabled()

    @property
    def resolved(self) -> bool:
        return self._resolved

    def set_remaining(self, seconds: int) -> None:
        """Update the countdown; confirm is enabled once it reaches zero."""
        self._remaining = max(0, seconds)
        if self._remaining > 0:
            self._countdown_label.setText(f"You can confirm in {self._remaining} second(s)")
            self._countdown_label.show()
            self._confirm_btn.setEnabled(False)
        else:
            self._countdown_label.hide()
            self._confirm_btn.setEnabled(not self._resolved)
            if not self._resolved:
                self._confirm_btn.setFocus()

    def close_from_service(self) -> None:
        """Close without reporting an outcome; the prompt was resolved elsewhere."""
        self._resolved = True
        self._confirm_btn.setEnabled(False)
        self.done(QDialog.DialogCode.Rejected.value)

    def _on_confirm_clicked(self) -> None:
        if self._resolved or self._remaining > 0:
            return
        self._resolved = True
        self._confirm_btn.setEnabled(False)
        self._on_confirm()
        self.accept()

    def _on_cancel_clicked(self) -> None:
        self._cancel_reason = CancelReason.BUTTON
        self.reject()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Escape.value:
            self._cancel_reason = CancelReason.ESCAPE
            self.reject()
            return
        super().keyPressEvent(event)

    def reject(self) -> None:
        """Treat every non-confirm close as a cancellation."""
        if not self._resolved:
            self._resolved = True
            self._confirm_btn.setEnabled(False)
            self._on_cancel(self._cancel_reason)
        super().reject()
