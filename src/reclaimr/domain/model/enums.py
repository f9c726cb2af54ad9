"""Enumerations shared across the domain model."""

from __future__ import annotations

from enum import StrEnum


class MediaType(StrEnum):
    MOVIE = "movie"
    TV_SHOW = "tv_show"


class MatchStatus(StrEnum):
    """Outcome of matching a catalog item against the media server."""

    MATCHED = "matched"
    NOT_FOUND = "not_found"
    METADATA_MISMATCH = "metadata_mismatch"


class ExternalType(StrEnum):
    """Catalog that owns an excluded item."""

    RADARR = "radarr"
    SONARR = "sonarr"
    UNKNOWN = "unknown"


class JobKind(StrEnum):
    FULL_SYNC = "full_sync"
    INCREMENTAL_SYNC = "incremental_sync"


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RuleType(StrEnum):
    """Kinds of advanced retention rules."""

    TAG = "tag"
    USER = "user"
    WATCHED = "watched"
