"""
app/paths.py -- Path resolution for frozen and development modes.

Handles sys._MEIPASS detection for PyInstaller bundles and uses
platformdirs for the user data directory holding the storage slot.
"""

from __future__ import annotations

import os
import sys

from platformdirs import user_data_dir

_APP_NAME = "CharacterCodex"
_APP_AUTHOR = "CharacterCodex"


def is_frozen() -> bool:
    """Return True if running from a PyInstaller bundle."""
    return getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS")


def get_project_root() -> str:
    """Return the repository root (development mode only)."""
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_user_data_dir() -> str:
    """Return the platform-appropriate user data directory."""
    path = user_data_dir(_APP_NAME, _APP_AUTHOR)
    os.makedirs(path, exist_ok=True)
    return path


def get_storage_dir(override: str | None = None) -> str:
    """Return the directory holding the dataset slot.

    An explicit *override* wins.  Frozen builds always keep data in the user
    data directory so it survives updates; development runs use
    ``<repo>/user-data`` so they never touch a real library.
    """
    if override:
        path = os.path.abspath(override)
    elif is_frozen():
        path = get_user_data_dir()
    else:
        path = os.path.join(get_project_root(), "user-data")
    os.makedirs(path, exist_ok=True)
    return path
