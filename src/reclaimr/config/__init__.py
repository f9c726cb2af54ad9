"""Configuration loading, validation and hot reload."""

from __future__ import annotations

from .errors import ConfigurationError, MissingConfigurationError
from .loader import load_settings, parse_settings, validate_settings
from .provider import FileConfigProvider, StaticConfigProvider
from .settings import (
    AdvancedRule,
    AppSettings,
    IntegrationConfig,
    IntegrationSettings,
    RetentionSettings,
    Settings,
    StorageSettings,
    SyncSettings,
    UserRule,
)

__all__ = [
    "AdvancedRule",
    "AppSettings",
    "ConfigurationError",
    "FileConfigProvider",
    "IntegrationConfig",
    "IntegrationSettings",
    "MissingConfigurationError",
    "RetentionSettings",
    "Settings",
    "StaticConfigProvider",
    "StorageSettings",
    "SyncSettings",
    "UserRule",
    "load_settings",
    "parse_settings",
    "validate_settings",
]
