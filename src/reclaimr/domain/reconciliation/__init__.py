"""Reconciliation of the media library across catalogs and media servers."""

from __future__ import annotations

from .engine import EngineStatus, ReconciliationEngine, ReconciliationResult
from .library import MediaLibrary
from .matching import (
    MOVIE_IDENTIFIERS,
    SERIES_IDENTIFIERS,
    IdentifierScheme,
    MatchCounts,
    identifier_scheme,
)
from .scheduler import RecurringTask

__all__ = [
    "MOVIE_IDENTIFIERS",
    "SERIES_IDENTIFIERS",
    "EngineStatus",
    "IdentifierScheme",
    "MatchCounts",
    "MediaLibrary",
    "ReconciliationEngine",
    "ReconciliationResult",
    "RecurringTask",
    "identifier_scheme",
]
