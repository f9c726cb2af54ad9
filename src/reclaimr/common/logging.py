"""Shared logging helpers for reclaimr."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once.

    Defaults to INFO and a terse format suitable for a long-running service
    writing to a terminal or a container log. Pass ``force=True`` to
    reconfigure from tests or when ``--verbose`` is requested.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
