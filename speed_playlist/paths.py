from __future__ import annotations

import sys
import tempfile
from pathlib import Path


def get_app_dir() -> Path:
    """
    Returns directory for the preferences file.

    - In dev: repo root (speed_playlist package parent)
    - In PyInstaller: executable directory
    """
    if getattr(sys, "frozen", False):  # PyInstaller
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


APP_DIR = get_app_dir()

CONFIG_FILE = APP_DIR / "config.json"

TEMP_DIR = Path(tempfile.gettempdir()) / "speed_playlist_previews"
