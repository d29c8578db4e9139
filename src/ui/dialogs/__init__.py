"""Dialog windows package for TodoKeeper."""

from src.ui.dialogs.confirm_delete import DeleteConfirmationDialog

__all__ = [
    "DeleteConfirmationDialog",
]
