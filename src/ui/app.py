"""Application initialization for TodoKeeper."""

from __future__ import annotations

import sys
from typing import Sequence

from PyQt6.QtWidgets import QApplication

from src.core.constants import APP_NAME, APP_VERSION


def create_application(argv: Sequence[str] | None = None) -> QApplication:
    """
    Create and configure the QApplication instance.

    Reuses the running instance when one exists, which is the case under
    pytest-qt.

    Args:
        argv: Command line arguments. Defaults to sys.argv.

    Returns:
        Configured QApplication instance
    """
    existing = QApplication.instance()
    if existing is not None:
        return existing

    app = QApplication(list(sys.argv if argv is None else argv))
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName(APP_NAME)
    return app
