"""Translate Jellyfin items into watch records."""

from __future__ import annotations

from reclaimr.domain.clock import ensure_utc
from reclaimr.domain.ports import WatchRecord

from .schema import ItemPayload


def parse_watch_record(payload: ItemPayload | dict[str, object]) -> WatchRecord:
    item = payload if isinstance(payload, ItemPayload) else ItemPayload.model_validate(payload)
    last_played = item.user_data.last_played_date
    # Jellyfin reports never-played items with a year-1 timestamp.
    if last_played is not None and last_played.year <= 1:
        last_played = None
    return WatchRecord(
        item_id=item.id,
        name=item.name,
        provider_ids={key: value for key, value in item.provider_ids.items() if value},
        play_count=item.user_data.play_count,
        last_played=ensure_utc(last_played) if last_played else None,
    )
