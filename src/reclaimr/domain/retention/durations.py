"""Retention duration parsing."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Final

from reclaimr.domain.errors import InvalidDurationError

NEVER: Final[str] = "never"

_DURATION_PATTERN = re.compile(r"^(\d+)([dhms])$")
_UNITS: Final[dict[str, str]] = {
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
}


def parse_duration(value: str) -> timedelta:
    """Parse ``90d``, ``24h``, ``30m``, ``45s`` or ``never``.

    ``never`` yields a zero duration, which callers treat as "retention
    disabled". Anything else, including the empty string, raises
    ``InvalidDurationError``.
    """

    if not value:
        raise InvalidDurationError("empty duration string")
    if value == NEVER:
        return timedelta(0)

    match = _DURATION_PATTERN.match(value)
    if match is None:
        raise InvalidDurationError(
            f"invalid duration format: {value} (expected format: 90d, 24h, 30m, or 'never')"
        )
    magnitude, unit = match.groups()
    try:
        return timedelta(**{_UNITS[unit]: int(magnitude)})
    except OverflowError as exc:
        raise InvalidDurationError(f"duration out of range: {value}") from exc


def is_valid_duration(value: str) -> bool:
    try:
        parse_duration(value)
    except InvalidDurationError:
        return False
    return True
