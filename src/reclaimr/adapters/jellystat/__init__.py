"""Jellystat play-history adapter."""

from __future__ import annotations

from .client import JellystatAPIError, JellystatClient
from .schema import HistoryItemPayload, HistoryPage
from .translator import parse_history_item

__all__ = [
    "HistoryItemPayload",
    "HistoryPage",
    "JellystatAPIError",
    "JellystatClient",
    "parse_history_item",
]
