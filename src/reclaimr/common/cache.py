"""Process-wide TTL cache for derived read-side data."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

from cachetools import TTLCache

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

log = getLogger(__name__)

DEFAULT_CACHE_SIZE = 256
DEFAULT_CACHE_TTL_SECONDS = 300.0


class MemoryCache:
    """Thread-safe wrapper around ``cachetools.TTLCache``."""

    def __init__(
        self,
        *,
        maxsize: int = DEFAULT_CACHE_SIZE,
        ttl: float = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        self._cache: TTLCache[Hashable, object] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> object | None:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: Hashable, value: object) -> None:
        with self._lock:
            self._cache[key] = value

    def get_or_set[T](self, key: Hashable, factory: Callable[[], T]) -> T:
        with self._lock:
            if key in self._cache:
                return self._cache[key]  # type: ignore[return-value]
        value = factory()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            size = len(self._cache)
            self._cache.clear()
        log.debug(f"Cleared {size} cached entries")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
