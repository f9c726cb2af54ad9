"""Load and validate the YAML configuration file."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import yaml
from pydantic import TypeAdapter, ValidationError

from reclaimr.domain.model.enums import RuleType
from reclaimr.domain.retention.durations import is_valid_duration

from .env import apply_env_overrides
from .errors import ConfigurationError, MissingConfigurationError
from .settings import Settings

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)

_SETTINGS_ADAPTER: TypeAdapter[Settings] = TypeAdapter(Settings)


def parse_settings(raw: object) -> Settings:
    """Validate an already-decoded mapping into a ``Settings`` snapshot."""

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping")
    try:
        settings = _SETTINGS_ADAPTER.validate_python(
            apply_env_overrides(cast(dict[str, Any], raw))
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    validate_settings(settings)
    return settings


def load_settings(path: Path, *, required: bool = False) -> Settings:
    """Read ``path`` and return a validated snapshot.

    A missing file yields the built-in defaults so a fresh install can start
    in dry-run mode without any integrations, unless ``required`` is set.
    """

    if not path.exists():
        if required:
            raise MissingConfigurationError(f"Configuration file not found: {path}")
        log.info(f"No configuration file at {path}, using defaults")
        return parse_settings({})
    try:
        with path.open(encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
    return parse_settings(raw)


def validate_settings(settings: Settings) -> None:
    """Raise ``ConfigurationError`` listing every problem found."""

    problems: list[str] = []

    for name, integration in settings.integrations.items():
        if not integration.enabled:
            continue
        if not integration.url.strip():
            problems.append(f"integrations.{name}.url is required when enabled")
        if not integration.api_key.strip():
            problems.append(f"integrations.{name}.api_key is required when enabled")
        if integration.max_retries < 0:
            problems.append(f"integrations.{name}.max_retries must not be negative")
        if integration.requests_per_second is not None and integration.requests_per_second <= 0:
            problems.append(f"integrations.{name}.requests_per_second must be positive")

    if not is_valid_duration(settings.rules.movie_retention):
        problems.append(f"rules.movie_retention is invalid: {settings.rules.movie_retention!r}")
    if not is_valid_duration(settings.rules.tv_retention):
        problems.append(f"rules.tv_retention is invalid: {settings.rules.tv_retention!r}")

    if settings.sync.full_interval <= 0:
        problems.append("sync.full_interval must be positive")
    if settings.sync.incremental_interval <= 0:
        problems.append("sync.incremental_interval must be positive")
    if settings.app.leaving_soon_days < 0:
        problems.append("app.leaving_soon_days must not be negative")
    if settings.storage.max_jobs <= 0:
        problems.append("storage.max_jobs must be positive")

    for index, rule in enumerate(settings.advanced_rules):
        label = rule.name or f"advanced_rules[{index}]"
        if not rule.name.strip():
            problems.append(f"advanced_rules[{index}].name is required")
        if rule.type is RuleType.TAG and not rule.tag.strip():
            problems.append(f"rule {label!r}: tag rules need a tag")
        if rule.type in (RuleType.TAG, RuleType.WATCHED) and not is_valid_duration(
            rule.retention
        ):
            problems.append(f"rule {label!r}: invalid retention {rule.retention!r}")
        if rule.type is RuleType.USER:
            if not rule.users:
                problems.append(f"rule {label!r}: user rules need at least one user")
            for user in rule.users:
                if not user.has_identifier:
                    problems.append(
                        f"rule {label!r}: each user needs a user_id, username or email"
                    )
                if not is_valid_duration(user.retention):
                    problems.append(f"rule {label!r}: invalid retention {user.retention!r}")

    if problems:
        log.error(f"Configuration has {len(problems)} problem(s)")
        raise ConfigurationError("; ".join(problems))

