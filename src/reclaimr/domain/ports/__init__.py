"""Domain port definitions for adapters."""

from __future__ import annotations

from .config import ConfigProvider
from .persistence import ExclusionStore, JobLedger, SharedCache
from .sources import (
    CatalogEntry,
    MediaRequest,
    MovieCatalog,
    PlayHistoryEntry,
    PlayHistorySource,
    RequestSource,
    SeriesCatalog,
    WatchHistorySource,
    WatchRecord,
)

__all__ = [
    "CatalogEntry",
    "ConfigProvider",
    "ExclusionStore",
    "JobLedger",
    "MediaRequest",
    "MovieCatalog",
    "PlayHistoryEntry",
    "PlayHistorySource",
    "RequestSource",
    "SeriesCatalog",
    "SharedCache",
    "WatchHistorySource",
    "WatchRecord",
]
