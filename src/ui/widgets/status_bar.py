"""Status bar widget for TodoKeeper.

Displays task and recycle bin counts, and deletion notifications.
"""

from __future__ import annotations

from PyQt6.QtWidgets import QStatusBar, QLabel, QWidget

from src.deletion.notifications import Level, Notification

LEVEL_STYLES = {
    Level.SUCCESS: "color: green;",
    Level.WARNING: "color: #b26a00;",
    Level.ERROR: "color: red; font-weight: bold;",
    Level.INFO: "",
}


class TaskStatusBar(QStatusBar):
    """
    Custom status bar showing counts and the latest notification.

    Layout: [Message] ... [Task Count] | [Recycle Bin Count]
    """

    def __init__(self, parent: QWidget | None = None) -> None:
        """Initialize the TaskStatusBar."""
        super().__init__(parent)
        self._last_notification: Notification | None = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        """Set up the status bar UI."""
        self._task_label = QLabel("0 tasks")
        self._task_label.setMinimumWidth(80)
        self.addPermanentWidget(self._task_label)

        self.addPermanentWidget(self._create_separator())

        self._bin_label = QLabel("0 in recycle bin")
        self._bin_label.setMinimumWidth(110)
        self.addPermanentWidget(self._bin_label)

    def _create_separator(self) -> QLabel:
        """Create a separator label."""
        sep = QLabel("|")
        sep.setStyleSheet("color: gray;")
        return sep

    @property
    def last_notification(self) -> Notification | None:
        return self._last_notification

    def set_counts(self, task_count: int, bin_count: int) -> None:
        """
        Update the displayed counts.

        Args:
            task_count: Number of live tasks
            bin_count: Number of recycle bin records
        """
        self._task_label.setText(f"{task_count:,} task{'s' if task_count != 1 else ''}")
        self._bin_label.setText(f"{bin_count:,} in recycle bin")

    def show_notification(self, notification: Notification, timeout: int = 5000) -> None:
        """
        Show a notification; failure details are kept in the tooltip.

        Args:
            notification: Notification to display
            timeout: Display time in milliseconds
        """
        self._last_notification = notification
        self.setStyleSheet(LEVEL_STYLES.get(notification.level, ""))
        text = notification.message
        if notification.details:
            text += f" ({len(notification.details)} item(s), hover for details)"
            self.setToolTip("\n".join(notification.details))
        else:
            self.setToolTip("")
        self.showMessage(text, timeout)

    def show_message(self, message: str, timeout: int = 3000) -> None:
        """
        Show a temporary message in the status bar.

        Args:
            message: Message to display
            timeout: Display time in milliseconds
        """
        self.setStyleSheet("")
        self.showMessage(message, timeout)
