"""Translate catalog entries into library items."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from reclaimr.domain.model import MediaItem, MediaType, movie_media_id, series_media_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from reclaimr.domain.ports import CatalogEntry

# Fields a catalog owns; everything else on ``MediaItem`` comes from other sources.
CATALOG_FIELDS = (
    "title",
    "year",
    "tags",
    "added_at",
    "file_path",
    "file_size",
    "quality_tag",
    "radarr_id",
    "sonarr_id",
    "tmdb_id",
    "tvdb_id",
)


def resolve_tags(tag_ids: Iterable[int], labels: Mapping[int, str]) -> frozenset[str]:
    return frozenset(labels[tag_id] for tag_id in tag_ids if tag_id in labels)


def build_movie_item(entry: CatalogEntry, tag_labels: Mapping[int, str]) -> MediaItem | None:
    """Return the library item for a movie, or ``None`` when no file is on disk."""

    if not entry.has_file:
        return None
    return MediaItem(
        id=movie_media_id(entry.native_id),
        type=MediaType.MOVIE,
        title=entry.title,
        year=entry.year,
        added_at=entry.added_at,
        tags=resolve_tags(entry.tag_ids, tag_labels),
        file_path=entry.path,
        file_size=entry.size_on_disk,
        quality_tag=entry.quality,
        radarr_id=entry.native_id,
        tmdb_id=entry.tmdb_id,
    )


def build_series_item(entry: CatalogEntry, tag_labels: Mapping[int, str]) -> MediaItem | None:
    """Return the library item for a series, or ``None`` when no episode files exist."""

    if not entry.has_file:
        return None
    return MediaItem(
        id=series_media_id(entry.native_id),
        type=MediaType.TV_SHOW,
        title=entry.title,
        year=entry.year,
        added_at=entry.added_at,
        tags=resolve_tags(entry.tag_ids, tag_labels),
        file_path=entry.path,
        file_size=entry.size_on_disk,
        sonarr_id=entry.native_id,
        tvdb_id=entry.tvdb_id,
    )


def merge_catalog_item(existing: MediaItem | None, fresh: MediaItem) -> MediaItem:
    """Overwrite the catalog-owned fields of ``existing`` with ``fresh``."""

    if existing is None:
        return fresh
    return replace(existing, **{name: getattr(fresh, name) for name in CATALOG_FIELDS})
