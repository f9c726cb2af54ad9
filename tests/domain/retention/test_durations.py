from __future__ import annotations

from datetime import timedelta

import pytest

from reclaimr.domain.errors import InvalidDurationError
from reclaimr.domain.retention import is_valid_duration, parse_duration


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("90d", timedelta(days=90)),
        ("24h", timedelta(hours=24)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("0d", timedelta(0)),
        ("never", timedelta(0)),
    ],
)
def test_parse_duration_accepts_supported_units(value: str, expected: timedelta) -> None:
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "10w", "1.5d", "d90", "-1d", "90 d", "Never"])
def test_parse_duration_rejects_other_formats(value: str) -> None:
    with pytest.raises(InvalidDurationError):
        parse_duration(value)


def test_invalid_duration_message_names_expected_format() -> None:
    with pytest.raises(InvalidDurationError, match="expected format: 90d, 24h, 30m, or 'never'"):
        parse_duration("10w")


def test_invalid_duration_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="invalid duration format"):
        parse_duration("soon")


def test_is_valid_duration() -> None:
    assert is_valid_duration("7d")
    assert is_valid_duration("never")
    assert not is_valid_duration("")


def test_duration_beyond_timedelta_range_is_invalid() -> None:
    with pytest.raises(InvalidDurationError, match="out of range"):
        parse_duration("99999999999d")
    assert not is_valid_duration("99999999999d")
