"""Translate Radarr payloads into catalog entries."""

from __future__ import annotations

from collections.abc import Mapping

from reclaimr.domain.clock import ensure_utc
from reclaimr.domain.ports import CatalogEntry

from .schema import MoviePayload


def parse_movie(payload: MoviePayload | Mapping[str, object]) -> CatalogEntry:
    movie = payload if isinstance(payload, MoviePayload) else MoviePayload.model_validate(payload)
    movie_file = movie.movie_file

    path = movie_file.path if movie_file and movie_file.path else movie.path
    quality = ""
    if movie_file and movie_file.quality:
        quality = movie_file.quality.quality.name

    return CatalogEntry(
        native_id=movie.id,
        title=movie.title,
        added_at=ensure_utc(movie.added),
        has_file=movie.has_file,
        year=movie.year or None,
        path=path,
        size_on_disk=movie.size_on_disk,
        tag_ids=tuple(movie.tags),
        tmdb_id=movie.tmdb_id or None,
        quality=quality,
    )
