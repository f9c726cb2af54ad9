"""Translate Jellystat history rows into play-history entries."""

from __future__ import annotations

from reclaimr.domain.clock import ensure_utc
from reclaimr.domain.ports import PlayHistoryEntry

from .schema import HistoryItemPayload


def parse_history_item(payload: HistoryItemPayload | dict[str, object]) -> PlayHistoryEntry:
    item = (
        payload
        if isinstance(payload, HistoryItemPayload)
        else HistoryItemPayload.model_validate(payload)
    )
    return PlayHistoryEntry(item_id=item.item_id, played_at=ensure_utc(item.played_at))
