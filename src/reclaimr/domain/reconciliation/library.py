"""The canonical in-memory media collection."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import TYPE_CHECKING

from reclaimr.common.locks import ReadWriteLock

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from reclaimr.domain.model import MediaItem


class MediaLibrary:
    """Mapping of internal id to ``MediaItem`` behind a reader/writer lock.

    Readers always receive copies, so callers can never mutate library state
    outside ``write()``.
    """

    def __init__(self) -> None:
        self._items: dict[str, MediaItem] = {}
        self._lock = ReadWriteLock()

    @contextmanager
    def read(self) -> Iterator[Mapping[str, MediaItem]]:
        with self._lock.read():
            yield self._items

    @contextmanager
    def write(self) -> Iterator[dict[str, MediaItem]]:
        with self._lock.write():
            yield self._items

    def get(self, media_id: str) -> MediaItem | None:
        with self._lock.read():
            item = self._items.get(media_id)
            return replace(item) if item is not None else None

    def items(self) -> list[MediaItem]:
        with self._lock.read():
            return [replace(item) for item in self._items.values()]

    def snapshot(self) -> dict[str, MediaItem]:
        with self._lock.read():
            return {media_id: replace(item) for media_id, item in self._items.items()}

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._items)
