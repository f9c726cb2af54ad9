"""Domain model for the reconciled media library."""

from __future__ import annotations

from .enums import ExternalType, JobKind, JobStatus, MatchStatus, MediaType, RuleType
from .media import (
    MOVIE_ID_PREFIX,
    SERIES_ID_PREFIX,
    MediaItem,
    Requester,
    movie_media_id,
    series_media_id,
)
from .records import DeletionCandidate, ExclusionRecord, JobRecord, whole_days

__all__ = [
    "MOVIE_ID_PREFIX",
    "SERIES_ID_PREFIX",
    "DeletionCandidate",
    "ExclusionRecord",
    "ExternalType",
    "JobKind",
    "JobRecord",
    "JobStatus",
    "MatchStatus",
    "MediaItem",
    "MediaType",
    "Requester",
    "RuleType",
    "movie_media_id",
    "series_media_id",
    "whole_days",
]
