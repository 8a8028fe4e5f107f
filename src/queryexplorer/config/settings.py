"""
Application settings and configuration.

This module provides centralized access to application settings with automatic
persistence to disk. Settings are stored as JSON in a platform-specific location:

- Windows: %APPDATA%/LocalLow/queryexplorer/settings.json
- macOS: ~/Library/Application Support/queryexplorer/settings.json
- Linux: ~/.config/queryexplorer/settings.json

Settings are automatically loaded on first access and saved when updated.

Example:
    from queryexplorer.config.settings import get_settings, get_settings_manager

    settings = get_settings()
    print(settings.extraction_latest_limit)

    manager = get_settings_manager()
    manager.update(events_directory=Path("/data/events"))
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from ..infrastructure.paths import (
    get_persistent_data_directory,
    get_default_persistence_directory,
    get_default_events_directory,
)


_PATH_FIELDS = ('log_file_path', 'persistence_directory', 'events_directory')


@dataclass
class AppSettings:
    """Application-wide settings."""

    # Logging settings
    log_level: int = logging.INFO
    log_to_file: bool = True
    log_file_path: Optional[Path] = None

    # Query execution
    extraction_latest_limit: int = 100
    """Number of most recent events an extraction returns when no `latest` is given."""

    # Storage locations (None means the default inside the data directory)
    persistence_directory: Optional[Path] = None
    events_directory: Optional[Path] = None

    def resolved_persistence_directory(self) -> Path:
        """Directory of saved explorers, falling back to the default location."""
        return self.persistence_directory or get_default_persistence_directory()

    def resolved_events_directory(self) -> Path:
        """Directory of local event collections, falling back to the default location."""
        return self.events_directory or get_default_events_directory()


class SettingsManager:
    """
    Manages loading and saving application settings.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize the settings manager.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        if config_file is None:
            data_dir = get_persistent_data_directory()
            config_file = data_dir / "settings.json"

        self.config_file = config_file
        self._settings = AppSettings()
        self._logger = logging.getLogger(__name__)

    def load(self) -> AppSettings:
        """
        Load settings from configuration file.

        Returns:
            The loaded settings object.
        """
        if not self.config_file.exists():
            self._logger.info(f"Settings file not found at {self.config_file}, using defaults")
            return self._settings

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for key in _PATH_FIELDS:
                if data.get(key):
                    data[key] = Path(data[key])

            for key, value in data.items():
                if hasattr(self._settings, key):
                    setattr(self._settings, key, value)

            self._logger.info(f"Settings loaded from {self.config_file}")

        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse settings file: {e}. Using defaults.")
        except OSError as e:
            self._logger.error(f"Failed to load settings: {e}. Using defaults.")

        return self._settings

    def save(self, settings: Optional[AppSettings] = None) -> None:
        """
        Save settings to configuration file.

        Args:
            settings: Settings object to save. If None, saves current settings.
        """
        if settings is not None:
            self._settings = settings

        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            data = asdict(self._settings)

            # Paths are stored with forward slashes
            for key in _PATH_FIELDS:
                if data.get(key):
                    data[key] = str(Path(data[key])).replace('\\', '/')

            # Atomic write: write to temp file, then rename
            temp_file = self.config_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.config_file)

            self._logger.info(f"Settings saved to {self.config_file}")

        except OSError as e:
            self._logger.error(f"Failed to save settings: {e}")

    def get(self) -> AppSettings:
        """
        Get the current settings.

        Returns:
            The current settings object.
        """
        return self._settings

    def update(self, **kwargs) -> None:
        """
        Update specific settings and auto-save.

        Args:
            **kwargs: Setting names and values to update.
        """
        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)
            else:
                self._logger.warning(f"Ignoring unknown setting: {key}")

        self.save()

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values and save."""
        self._settings = AppSettings()
        self.save()


# Global settings instance
_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """
    Get the global settings manager instance.

    Returns:
        The global SettingsManager.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
        _settings_manager.load()
    return _settings_manager


def get_settings() -> AppSettings:
    """
    Get the current application settings.

    Returns:
        The current AppSettings object.
    """
    return get_settings_manager().get()
