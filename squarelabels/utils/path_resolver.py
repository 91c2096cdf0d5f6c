"""Path resolution utility for determining where to store user data files.

This module handles smart path resolution that:
1. Checks if the package has write access to its root directory
2. If yes, uses the root directory (portable mode)
3. If no, uses platform-specific user data directories
"""

import os
import sys
from pathlib import Path
from typing import Tuple


APP_NAME = "SquareLabels"


def get_app_root() -> Path:
    """Get the application root directory (the directory containing the package).

    Returns:
        Path to the application root directory.
    """
    return Path(__file__).parent.parent.parent


def has_write_access(directory: Path) -> bool:
    """Check if the application has write access to a directory.

    Args:
        directory: Directory path to check.

    Returns:
        True if write access is available, False otherwise.
    """
    if not directory.exists():
        return False

    # Try to create a test file
    test_file = directory / ".write_test"
    try:
        test_file.touch()
        test_file.unlink()
        return True
    except (OSError, PermissionError):
        return False


def get_user_data_directory() -> Path:
    """Get the platform-specific user data directory.

    Returns:
        Path to the user data directory for SquareLabels.
    """
    if sys.platform == "win32":
        # Windows: %APPDATA%\SquareLabels
        appdata = os.getenv("APPDATA")
        if appdata:
            return Path(appdata) / APP_NAME
        return Path.home() / "AppData" / "Roaming" / APP_NAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        xdg_data_home = os.getenv("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / APP_NAME
        return Path.home() / ".local" / "share" / APP_NAME


def resolve_data_file_path(filename: str) -> Tuple[Path, bool]:
    """Resolve the path for a user data file (settings, logs).

    Args:
        filename: Name of the data file (e.g., "coordinate_settings.json").

    Returns:
        Tuple of (resolved_path, is_portable_mode).
        - resolved_path: The path where the file should be stored/loaded
        - is_portable_mode: True if using app root, False if using user data directory
    """
    app_root = get_app_root()
    if has_write_access(app_root):
        return app_root / filename, True

    user_data_dir = get_user_data_directory()
    user_data_dir.mkdir(parents=True, exist_ok=True)
    return user_data_dir / filename, False


def get_app_resource_path(relative_path: str) -> Path:
    """Get the path to a read-only resource shipped with the package.

    Args:
        relative_path: Relative path from app root (e.g., "squarelabels/config/config.json").

    Returns:
        Path to the resource file.
    """
    return get_app_root() / relative_path
