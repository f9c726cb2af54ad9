"""Builders for media items, catalog entries and settings used across tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from reclaimr.config.settings import (
    AdvancedRule,
    AppSettings,
    RetentionSettings,
    Settings,
    SyncSettings,
    UserRule,
)
from reclaimr.domain.model import MediaItem, MediaType, RuleType, movie_media_id, series_media_id
from reclaimr.domain.ports import CatalogEntry

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_movie(native_id: int = 1, **overrides: Any) -> MediaItem:
    values: dict[str, Any] = {
        "id": movie_media_id(native_id),
        "type": MediaType.MOVIE,
        "title": f"Movie {native_id}",
        "added_at": days_ago(10),
        "radarr_id": native_id,
        "tmdb_id": 1000 + native_id,
    }
    values.update(overrides)
    return MediaItem(**values)


def make_show(native_id: int = 1, **overrides: Any) -> MediaItem:
    values: dict[str, Any] = {
        "id": series_media_id(native_id),
        "type": MediaType.TV_SHOW,
        "title": f"Show {native_id}",
        "added_at": days_ago(10),
        "sonarr_id": native_id,
        "tvdb_id": 2000 + native_id,
    }
    values.update(overrides)
    return MediaItem(**values)


def make_movie_entry(native_id: int = 1, **overrides: Any) -> CatalogEntry:
    values: dict[str, Any] = {
        "native_id": native_id,
        "title": f"Movie {native_id}",
        "added_at": days_ago(10),
        "has_file": True,
        "tmdb_id": 1000 + native_id,
    }
    values.update(overrides)
    return CatalogEntry(**values)


def make_series_entry(native_id: int = 1, **overrides: Any) -> CatalogEntry:
    values: dict[str, Any] = {
        "native_id": native_id,
        "title": f"Show {native_id}",
        "added_at": days_ago(10),
        "has_file": True,
        "tvdb_id": 2000 + native_id,
    }
    values.update(overrides)
    return CatalogEntry(**values)


def make_settings(
    *,
    movie_retention: str = "90d",
    tv_retention: str = "120d",
    rules: tuple[AdvancedRule, ...] = (),
    dry_run: bool = True,
    enable_deletion: bool = False,
    leaving_soon_days: int = 14,
    auto_start: bool = False,
    full_interval: int = 3600,
    incremental_interval: int = 900,
) -> Settings:
    return Settings(
        app=AppSettings(
            dry_run=dry_run,
            enable_deletion=enable_deletion,
            leaving_soon_days=leaving_soon_days,
        ),
        sync=SyncSettings(
            full_interval=full_interval,
            incremental_interval=incremental_interval,
            auto_start=auto_start,
        ),
        rules=RetentionSettings(movie_retention=movie_retention, tv_retention=tv_retention),
        advanced_rules=rules,
    )


def tag_rule(name: str, tag: str, retention: str, *, enabled: bool = True) -> AdvancedRule:
    return AdvancedRule(name=name, type=RuleType.TAG, enabled=enabled, tag=tag, retention=retention)


def user_rule(name: str, *users: UserRule, enabled: bool = True) -> AdvancedRule:
    return AdvancedRule(name=name, type=RuleType.USER, enabled=enabled, users=users)


def watched_rule(
    name: str,
    retention: str,
    *,
    require_watched: bool = False,
    enabled: bool = True,
) -> AdvancedRule:
    return AdvancedRule(
        name=name,
        type=RuleType.WATCHED,
        enabled=enabled,
        retention=retention,
        require_watched=require_watched,
    )
