"""Application entry point for TodoKeeper.

Initializes logging, loads the configuration, starts the deletion service and
shows the main window.
"""

import logging
import sys

from src.core.config import ConfigError, ConfigManager, DeletionSettings
from src.core.constants import DATA_DIR
from src.core.logging_config import setup_logging
from src.deletion import DeletionCoordinator, RecycleBin
from src.storage import JsonKeyValueStore, JsonTaskStore
from src.ui.app import create_application
from src.ui.main_window import MainWindow
from src.ui.workers import DeletionService

logger = logging.getLogger(__name__)


def _load_config() -> ConfigManager | None:
    """Load the configuration; None means it is unusable and defaults apply."""
    try:
        return ConfigManager()
    except ConfigError as e:
        logger.warning("Using default settings: %s", e)
        return None


def _record_sweep(config: ConfigManager, swept: list[str]) -> None:
    """Persist the time of the startup sweep."""
    config.update_last_sweep()
    try:
        config.save()
    except OSError as e:
        logger.warning("Failed to save last sweep time: %s", e)
    logger.info("Startup sweep removed %d expired task(s)", len(swept))


def main() -> int:
    """
    Application entry point.

    Returns:
        Exit code (0 for success)
    """
    setup_logging(debug_mode="--debug" in sys.argv)

    config = _load_config()
    settings = config.deletion_settings if config is not None else DeletionSettings()

    storage = JsonKeyValueStore(DATA_DIR)
    coordinator = DeletionCoordinator(
        JsonTaskStore(storage),
        RecycleBin(storage),
        settings=settings,
    )

    app = create_application(sys.argv)

    # The service loads the recycle bin and sweeps expired records on start
    service = DeletionService(coordinator)
    if config is not None:
        service.started_up.connect(lambda swept: _record_sweep(config, swept))

    window = MainWindow(service)
    service.start()
    window.show()

    try:
        return app.exec()
    finally:
        service.stop()


if __name__ == "__main__":
    sys.exit(main())
