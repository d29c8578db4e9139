"""Configuration management for TodoKeeper."""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .constants import (
    CONFIG_DIR,
    CONFIG_FILE,
    CONFIG_VERSION,
    DATA_DIR,
    DEFAULT_SETTINGS,
    INTEGER_SETTINGS,
    LOGS_DIR,
)

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass(frozen=True)
class DeletionSettings:
    """Typed view of the settings that drive the deletion lifecycle."""

    confirm_before_delete: bool = True
    confirm_timeout_ms: int = 3000
    recycle_bin_retention_days: int = 30
    max_batch_size: int = 50
    history_limit: int = 100
    animation_duration_ms: int = 300

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "DeletionSettings":
        """Build from a settings dict, falling back to defaults for missing keys."""
        merged = {**DEFAULT_SETTINGS, **settings}
        return cls(
            confirm_before_delete=bool(merged["confirm_before_delete"]),
            confirm_timeout_ms=int(merged["confirm_timeout_ms"]),
            recycle_bin_retention_days=int(merged["recycle_bin_retention_days"]),
            max_batch_size=int(merged["max_batch_size"]),
            history_limit=int(merged["history_limit"]),
            animation_duration_ms=int(merged["animation_duration_ms"]),
        )


def _validate_settings(settings: dict[str, Any]) -> list[str]:
    """Validate known setting values and return a list of errors."""
    errors = []

    for key, minimum in INTEGER_SETTINGS.items():
        if key not in settings:
            continue
        value = settings[key]
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"Setting '{key}' must be an integer")
        elif value < minimum:
            errors.append(f"Setting '{key}' must be >= {minimum}, got {value}")

    if "confirm_before_delete" in settings and not isinstance(
        settings["confirm_before_delete"], bool
    ):
        errors.append("Setting 'confirm_before_delete' must be a boolean")

    return errors


class ConfigManager:
    """
    Owns ``config.json``: the settings dict plus the time of the last sweep.

    Settings added in newer versions are filled in from the defaults on load,
    so an older file keeps working without being rewritten by hand.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or CONFIG_FILE
        self._config: dict[str, Any] = {}
        for directory in (CONFIG_DIR, LOGS_DIR, DATA_DIR, self.config_path.parent):
            directory.mkdir(parents=True, exist_ok=True)
        self.load()

    @staticmethod
    def _defaults() -> dict[str, Any]:
        return {
            "version": CONFIG_VERSION,
            "settings": dict(DEFAULT_SETTINGS),
            "last_sweep": None,
        }

    @staticmethod
    def _structure_errors(config: Any) -> list[str]:
        if not isinstance(config, dict):
            return ["top level must be an object"]
        errors = []
        if not isinstance(config.get("version"), int):
            errors.append("Missing or invalid 'version' field")
        if not isinstance(config.get("settings"), dict):
            errors.append("Missing or invalid 'settings' field")
        else:
            errors.extend(_validate_settings(config["settings"]))
        return errors

    def load(self) -> None:
        """
        Load configuration from file, creating defaults if needed.

        Raises:
            ConfigError: If the file is not valid JSON or fails validation
        """
        if not self.config_path.exists():
            logger.info("Config file not found, creating defaults at %s", self.config_path)
            self._config = self._defaults()
            self.save()
            return

        try:
            loaded = json.loads(self.config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}") from e

        errors = self._structure_errors(loaded)
        if errors:
            for error in errors:
                logger.error("Config validation error: %s", error)
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        missing = [key for key in DEFAULT_SETTINGS if key not in loaded["settings"]]
        if missing:
            logger.info("Adding default values for new settings: %s", ", ".join(missing))
            loaded["settings"] = {**DEFAULT_SETTINGS, **loaded["settings"]}
        loaded.setdefault("last_sweep", None)

        self._config = loaded
        logger.debug("Configuration loaded from %s", self.config_path)

    def save(self) -> None:
        """Write the configuration through a temporary file."""
        tmp_path = self.config_path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(self._config, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.config_path)
        logger.debug("Configuration saved to %s", self.config_path)

    @property
    def config(self) -> dict[str, Any]:
        """Return a copy of the current configuration."""
        return dict(self._config)

    @property
    def settings(self) -> dict[str, Any]:
        return dict(self._config.get("settings", {}))

    @property
    def deletion_settings(self) -> DeletionSettings:
        """Return the typed deletion settings."""
        return DeletionSettings.from_settings(self.settings)

    def update_settings(self, **kwargs: Any) -> DeletionSettings:
        """
        Validate and apply new setting values. Call save() to persist them.

        Raises:
            ConfigError: If a key is unknown or a value is invalid
        """
        errors = [f"Unknown setting '{key}'" for key in kwargs if key not in DEFAULT_SETTINGS]
        errors.extend(_validate_settings(kwargs))
        if errors:
            raise ConfigError(f"Invalid settings: {'; '.join(errors)}")
        self._config.setdefault("settings", {}).update(kwargs)
        return self.deletion_settings

    def update_last_sweep(self, when: datetime | None = None) -> None:
        """Record when expired recycle bin records were last evicted."""
        when = when or datetime.now(timezone.utc)
        self._config["last_sweep"] = when.isoformat().replace("+00:00", "Z")
