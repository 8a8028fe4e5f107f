"""
Path utilities and constants.

This module provides helper functions for working with paths in the application.
"""

import platform
from pathlib import Path


APP_NAME = "queryexplorer"


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.

    Returns:
        The path (for chaining).

    Raises:
        IOError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        return path
    except OSError as e:
        raise IOError(f"Failed to create directory {path}: {e}")


def get_persistent_data_directory() -> Path:
    """
    Get the persistent data directory for the application (cross-platform).

    Returns:
        Path to the persistent data directory.

    Platform-specific locations:
        - Windows: %APPDATA%/LocalLow/queryexplorer
        - macOS: ~/Library/Application Support/queryexplorer
        - Linux: ~/.config/queryexplorer
    """
    system = platform.system()

    if system == "Windows":
        base = Path.home() / "AppData" / "LocalLow"
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"

    return ensure_directory(base / APP_NAME)


def get_settings_file_path() -> Path:
    """Get the path to the settings.json file."""
    return get_persistent_data_directory() / "settings.json"


def get_log_file_path() -> Path:
    """Get the path to the main log file."""
    return get_persistent_data_directory() / "log.txt"


def get_old_log_file_path() -> Path:
    """Get the path to the previous session's log file."""
    return get_persistent_data_directory() / "log.old.txt"


def get_default_persistence_directory() -> Path:
    """
    Get the directory where saved explorers are stored by default.

    Returns:
        Path to the explorers directory inside the persistent data directory.
    """
    return get_persistent_data_directory() / "explorers"


def get_default_events_directory() -> Path:
    """
    Get the directory holding local event collections by default.

    Returns:
        Path to the events directory inside the persistent data directory.
    """
    return get_persistent_data_directory() / "events"
