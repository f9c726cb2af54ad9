"""Configuration providers handing out the current ``Settings`` snapshot."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ConfigurationError
from .loader import load_settings

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from .settings import Settings

log = getLogger(__name__)

type ReloadListener = Callable[[Settings], None]


@dataclass(slots=True, frozen=True)
class StaticConfigProvider:
    """Always returns the same snapshot."""

    settings: Settings

    def __call__(self) -> Settings:
        return self.settings


@dataclass(slots=True)
class FileConfigProvider:
    """Reload the YAML file whenever its modification time changes.

    A broken edit keeps the last good snapshot in place and logs the
    problem. Listeners run after every successful reload, outside the lock.
    """

    path: Path
    _settings: Settings | None = field(default=None, init=False)
    _mtime_ns: int | None = field(default=None, init=False)
    _listeners: list[ReloadListener] = field(default_factory=list, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self) -> None:
        self._settings = load_settings(self.path)
        self._mtime_ns = self._current_mtime()

    def __call__(self) -> Settings:
        reloaded: Settings | None = None
        with self._lock:
            mtime = self._current_mtime()
            if mtime != self._mtime_ns:
                self._mtime_ns = mtime
                try:
                    reloaded = load_settings(self.path)
                except ConfigurationError as exc:
                    log.warning(f"Ignoring invalid configuration change in {self.path}: {exc}")
                else:
                    log.info(f"Reloaded configuration from {self.path}")
                    self._settings = reloaded
            settings = self._settings
        if reloaded is not None:
            for listener in list(self._listeners):
                listener(reloaded)
        if settings is None:
            raise ConfigurationError(f"No configuration loaded from {self.path}")
        return settings

    def add_listener(self, listener: ReloadListener) -> None:
        self._listeners.append(listener)

    def _current_mtime(self) -> int | None:
        try:
            return self.path.stat().st_mtime_ns
        except FileNotFoundError:
            return None
