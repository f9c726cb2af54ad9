"""Canonical media item held in the reconciled library."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .enums import ExternalType, MatchStatus, MediaType

MOVIE_ID_PREFIX = "radarr"
SERIES_ID_PREFIX = "sonarr"


def movie_media_id(native_id: int) -> str:
    return f"{MOVIE_ID_PREFIX}-{native_id}"


def series_media_id(native_id: int) -> str:
    return f"{SERIES_ID_PREFIX}-{native_id}"


@dataclass(slots=True, frozen=True)
class Requester:
    """Identity of the user who requested an item.

    Any of the fields may be missing; the request service only reports what
    its user record holds.
    """

    user_id: int | None = None
    username: str | None = None
    email: str | None = None

    @property
    def has_identifier(self) -> bool:
        return self.user_id is not None or bool(self.username) or bool(self.email)


@dataclass(slots=True)
class MediaItem:
    """A movie or TV show as seen by the reconciliation engine.

    Fields below ``requester`` are volatile: they are recomputed on every
    reconciliation pass and never persisted.
    """

    id: str
    type: MediaType
    title: str
    added_at: datetime
    year: int | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    last_watched: datetime | None = None
    watch_count: int = 0
    file_path: str = ""
    file_size: int = 0
    quality_tag: str = ""

    radarr_id: int | None = None
    sonarr_id: int | None = None
    tmdb_id: int | None = None
    tvdb_id: int | None = None
    jellyfin_id: str | None = None

    is_requested: bool = False
    requester: Requester | None = None

    is_excluded: bool = False
    delete_after: datetime | None = None
    days_until_due: int = 0
    deletion_reason: str = ""
    match_status: MatchStatus | None = None
    match_info: str = ""

    @property
    def is_movie(self) -> bool:
        return self.type is MediaType.MOVIE

    @property
    def base_time(self) -> datetime:
        """Reference point for retention: last watch, else when it was added."""

        return self.last_watched if self.last_watched is not None else self.added_at

    def exclusion_key(self) -> tuple[str, ExternalType]:
        """Source-qualified external id used for exclusion records."""

        if self.radarr_id is not None:
            return movie_media_id(self.radarr_id), ExternalType.RADARR
        if self.sonarr_id is not None:
            return series_media_id(self.sonarr_id), ExternalType.SONARR
        return self.id, ExternalType.UNKNOWN
