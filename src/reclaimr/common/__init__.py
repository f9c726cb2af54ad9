"""Cross-cutting helpers shared by the domain, adapters and entry points."""

from __future__ import annotations

from .cache import MemoryCache
from .locks import ReadWriteLock
from .logging import configure_logging
from .storage import ensure_data_dir, get_config_path, get_data_dir, get_database_uri

__all__ = [
    "MemoryCache",
    "ReadWriteLock",
    "configure_logging",
    "ensure_data_dir",
    "get_config_path",
    "get_data_dir",
    "get_database_uri",
]
