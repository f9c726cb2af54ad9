"""Background threads driving scheduled reconciliation."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


class RecurringTask:
    """Run ``action`` every ``interval`` seconds until ``stop_event`` is set.

    The first run happens one interval after ``start``. Setting the event
    wakes the thread immediately; an action already in progress is allowed
    to finish.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        action: Callable[[], object],
        stop_event: threading.Event,
    ) -> None:
        self.name = name
        self.interval = interval
        self._action = action
        self._stop_event = stop_event
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._loop, name=f"reclaimr-{self.name}", daemon=True)
        self._thread.start()
        log.debug(f"Started {self.name} loop every {self.interval}s")

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop_event.wait(timeout=self.interval):
            try:
                self._action()
            except Exception:
                log.exception(f"Scheduled {self.name} failed")
        log.debug(f"Stopped {self.name} loop")


def run_detached(name: str, action: Callable[[], object]) -> threading.Thread:
    """Run ``action`` once on a daemon thread, logging any failure."""

    def target() -> None:
        try:
            action()
        except Exception:
            log.exception(f"Background {name} failed")

    thread = threading.Thread(target=target, name=f"reclaimr-{name}", daemon=True)
    thread.start()
    return thread
