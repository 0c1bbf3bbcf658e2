"""Where MediaTime keeps its data."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "MediaTime"
DATA_DIR_ENV = "MEDIA_TIME_HOME"


def get_data_dir() -> Path:
    """The data directory, overridable with ``MEDIA_TIME_HOME``."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        path = Path(override).expanduser()
    else:
        path = PlatformDirs(appname=APP_NAME, appauthor=False).user_data_path
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    return get_data_dir() / "sessions.sqlite3"
