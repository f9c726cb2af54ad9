"""Typed configuration snapshot.

A ``Settings`` instance is immutable; hot reload swaps the whole snapshot
rather than mutating it in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from reclaimr.domain.model.enums import MediaType, RuleType

DEFAULT_FULL_INTERVAL_SECONDS = 3600
DEFAULT_INCREMENTAL_INTERVAL_SECONDS = 900
DEFAULT_LEAVING_SOON_DAYS = 14
DEFAULT_MAX_JOBS = 100
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_HTTP_RETRIES = 3


@dataclass(slots=True, frozen=True)
class AppSettings:
    dry_run: bool = True
    enable_deletion: bool = False
    leaving_soon_days: int = DEFAULT_LEAVING_SOON_DAYS


@dataclass(slots=True, frozen=True)
class SyncSettings:
    """Scheduler cadence, in seconds."""

    full_interval: int = DEFAULT_FULL_INTERVAL_SECONDS
    incremental_interval: int = DEFAULT_INCREMENTAL_INTERVAL_SECONDS
    auto_start: bool = True


@dataclass(slots=True, frozen=True)
class RetentionSettings:
    movie_retention: str = "90d"
    tv_retention: str = "120d"

    def for_type(self, media_type: MediaType) -> str:
        return self.movie_retention if media_type is MediaType.MOVIE else self.tv_retention


@dataclass(slots=True, frozen=True)
class StorageSettings:
    max_jobs: int = DEFAULT_MAX_JOBS


@dataclass(slots=True, frozen=True)
class IntegrationConfig:
    enabled: bool = False
    url: str = ""
    api_key: str = ""
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_HTTP_RETRIES
    requests_per_second: float | None = None


@dataclass(slots=True, frozen=True)
class IntegrationSettings:
    radarr: IntegrationConfig = field(default_factory=IntegrationConfig)
    sonarr: IntegrationConfig = field(default_factory=IntegrationConfig)
    jellyfin: IntegrationConfig = field(default_factory=IntegrationConfig)
    jellystat: IntegrationConfig = field(default_factory=IntegrationConfig)
    jellyseerr: IntegrationConfig = field(default_factory=IntegrationConfig)

    def items(self) -> tuple[tuple[str, IntegrationConfig], ...]:
        return (
            ("radarr", self.radarr),
            ("sonarr", self.sonarr),
            ("jellyfin", self.jellyfin),
            ("jellystat", self.jellystat),
            ("jellyseerr", self.jellyseerr),
        )


@dataclass(slots=True, frozen=True)
class UserRule:
    """Per-requester retention inside a user rule."""

    user_id: int | None = None
    username: str = ""
    email: str = ""
    retention: str = ""
    require_watched: bool = False

    @property
    def has_identifier(self) -> bool:
        return self.user_id is not None or bool(self.username) or bool(self.email)


@dataclass(slots=True, frozen=True)
class AdvancedRule:
    name: str
    type: RuleType
    enabled: bool = True
    tag: str = ""
    retention: str = ""
    require_watched: bool = False
    users: tuple[UserRule, ...] = ()


@dataclass(slots=True, frozen=True)
class Settings:
    app: AppSettings = field(default_factory=AppSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    rules: RetentionSettings = field(default_factory=RetentionSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    integrations: IntegrationSettings = field(default_factory=IntegrationSettings)
    advanced_rules: tuple[AdvancedRule, ...] = ()

    def enabled_rules(self, rule_type: RuleType) -> tuple[AdvancedRule, ...]:
        return tuple(
            rule for rule in self.advanced_rules if rule.enabled and rule.type is rule_type
        )
