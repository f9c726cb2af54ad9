"""Ports for the external systems the library is reconciled against."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from reclaimr.domain.model import MediaType, Requester

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    """One movie or series as reported by its owning catalog."""

    native_id: int
    title: str
    added_at: datetime
    has_file: bool
    year: int | None = None
    path: str = ""
    size_on_disk: int = 0
    tag_ids: tuple[int, ...] = ()
    tmdb_id: int | None = None
    tvdb_id: int | None = None
    quality: str = ""


@dataclass(slots=True, frozen=True)
class WatchRecord:
    """Media server view of an item and its playback state."""

    item_id: str
    name: str
    provider_ids: Mapping[str, str] = field(default_factory=dict)
    play_count: int = 0
    last_played: datetime | None = None


@dataclass(slots=True, frozen=True)
class PlayHistoryEntry:
    """Single playback event from the play-history service."""

    item_id: str
    played_at: datetime


@dataclass(slots=True, frozen=True)
class MediaRequest:
    """User request for a movie or show in the request service."""

    status: int
    media_type: MediaType | None = None
    tmdb_id: int | None = None
    tvdb_id: int | None = None
    requester: Requester = field(default_factory=Requester)


@runtime_checkable
class MovieCatalog(Protocol):
    def list_movies(self) -> Sequence[CatalogEntry]: ...

    def list_tags(self) -> Mapping[int, str]: ...

    def delete_movie(self, native_id: int, *, delete_files: bool = True) -> None: ...


@runtime_checkable
class SeriesCatalog(Protocol):
    def list_series(self) -> Sequence[CatalogEntry]: ...

    def list_tags(self) -> Mapping[int, str]: ...

    def delete_series(self, native_id: int, *, delete_files: bool = True) -> None: ...


@runtime_checkable
class WatchHistorySource(Protocol):
    """Primary watch-history source: the media server itself."""

    def list_watch_records(self, media_type: MediaType) -> Sequence[WatchRecord]: ...

    def refresh_library(self) -> None: ...


@runtime_checkable
class PlayHistorySource(Protocol):
    """Secondary watch-history source with per-play detail."""

    def list_play_history(self) -> Sequence[PlayHistoryEntry]: ...


@runtime_checkable
class RequestSource(Protocol):
    def list_requests(self) -> Sequence[MediaRequest]: ...


__all__ = [
    "CatalogEntry",
    "MediaRequest",
    "MovieCatalog",
    "PlayHistoryEntry",
    "PlayHistorySource",
    "RequestSource",
    "SeriesCatalog",
    "WatchHistorySource",
    "WatchRecord",
]
