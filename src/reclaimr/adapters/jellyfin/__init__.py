"""Jellyfin media server adapter."""

from __future__ import annotations

from .client import JellyfinAPIError, JellyfinClient
from .schema import ItemPayload, ItemsResponse
from .translator import parse_watch_record

__all__ = [
    "ItemPayload",
    "ItemsResponse",
    "JellyfinAPIError",
    "JellyfinClient",
    "parse_watch_record",
]
