"""Environment variable overrides for configuration."""

from __future__ import annotations

import os
from typing import Any

INTEGRATION_NAMES = ("radarr", "sonarr", "jellyfin", "jellystat", "jellyseerr")


def apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``RECLAIMR_<SERVICE>_URL`` and ``RECLAIMR_<SERVICE>_API_KEY``.

    Keeps API keys out of the YAML file; values from a ``.env`` file work
    once ``load_dotenv`` has run.
    """

    merged = dict(raw)
    integrations = dict(merged.get("integrations") or {})
    for name in INTEGRATION_NAMES:
        overrides: dict[str, str] = {}
        for field_name in ("url", "api_key"):
            value = os.getenv(f"RECLAIMR_{name.upper()}_{field_name.upper()}")
            if value is not None and value.strip():
                overrides[field_name] = value.strip()
        if overrides:
            integrations[name] = {**(integrations.get(name) or {}), **overrides}
    if integrations:
        merged["integrations"] = integrations
    return merged
