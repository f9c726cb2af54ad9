"""Data storage helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "reclaimr"
DEFAULT_DB_FILENAME: Final[str] = "reclaimr.db"
DEFAULT_CONFIG_FILENAME: Final[str] = "config.yaml"


def get_data_dir() -> Path:
    """Return the directory where reclaimr keeps its database and config."""

    env_dir = os.getenv("RECLAIMR_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    base = os.getenv("XDG_DATA_HOME")
    base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def ensure_data_dir(path: Path | None = None) -> Path:
    """Ensure the data directory exists and return it."""

    data_dir = path or get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_config_path() -> Path:
    """Return the configuration file path, respecting ``RECLAIMR_CONFIG``."""

    env_path = os.getenv("RECLAIMR_CONFIG")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return get_data_dir() / DEFAULT_CONFIG_FILENAME


def get_database_uri() -> str:
    """Compute the database URI, respecting ``DATABASE_URI``."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return env_uri
    db_path = ensure_data_dir() / DEFAULT_DB_FILENAME
    return f"sqlite+pysqlite:///{db_path}"
