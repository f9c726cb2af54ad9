"""Translate Sonarr payloads into catalog entries."""

from __future__ import annotations

from collections.abc import Mapping

from reclaimr.domain.clock import ensure_utc
from reclaimr.domain.ports import CatalogEntry

from .schema import SeriesPayload


def parse_series(payload: SeriesPayload | Mapping[str, object]) -> CatalogEntry:
    series = (
        payload if isinstance(payload, SeriesPayload) else SeriesPayload.model_validate(payload)
    )
    return CatalogEntry(
        native_id=series.id,
        title=series.title,
        added_at=ensure_utc(series.added),
        has_file=series.has_files,
        year=series.year or None,
        path=series.path,
        size_on_disk=series.statistics.size_on_disk,
        tag_ids=tuple(series.tags),
        tvdb_id=series.tvdb_id or None,
    )
