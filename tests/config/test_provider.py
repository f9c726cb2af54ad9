from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from reclaimr.config import ConfigurationError, FileConfigProvider, Settings

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, text: str, *, bump: int = 0) -> None:
    path.write_text(text, encoding="utf-8")
    if bump:
        stat = path.stat()
        mtime = stat.st_mtime_ns + bump * 1_000_000_000
        os.utime(path, ns=(mtime, mtime))


def test_reloads_when_the_file_changes(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    _write(path, "rules:\n  movie_retention: 30d\n")
    provider = FileConfigProvider(path)
    reloaded: list[Settings] = []
    provider.add_listener(reloaded.append)

    assert provider().rules.movie_retention == "30d"
    assert reloaded == []

    _write(path, "rules:\n  movie_retention: 45d\n", bump=5)

    assert provider().rules.movie_retention == "45d"
    assert [settings.rules.movie_retention for settings in reloaded] == ["45d"]
    provider()
    assert len(reloaded) == 1


def test_invalid_edit_keeps_last_good_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    _write(path, "rules:\n  movie_retention: 30d\n")
    provider = FileConfigProvider(path)
    reloaded: list[Settings] = []
    provider.add_listener(reloaded.append)

    _write(path, "rules:\n  movie_retention: soon\n", bump=5)

    assert provider().rules.movie_retention == "30d"
    assert reloaded == []


def test_missing_file_starts_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    provider = FileConfigProvider(path)

    assert provider() == Settings()

    _write(path, "app:\n  leaving_soon_days: 3\n")

    assert provider().app.leaving_soon_days == 3


def test_out_of_range_retention_edit_keeps_last_good_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    _write(path, "rules:\n  movie_retention: 30d\n")
    provider = FileConfigProvider(path)

    _write(path, "rules:\n  movie_retention: 99999999999d\n", bump=5)

    assert provider().rules.movie_retention == "30d"


def test_missing_snapshot_raises_configuration_error(tmp_path: Path) -> None:
    provider = FileConfigProvider(tmp_path / "config.yaml")
    provider._settings = None  # noqa: SLF001

    with pytest.raises(ConfigurationError, match="No configuration loaded"):
        provider()
