"""Pieces shared by the Radarr and Sonarr catalog adapters."""

from __future__ import annotations

from .client import ServarrAPIError, ServarrClient
from .schema import ServarrBaseModel, TagPayload

__all__ = ["ServarrAPIError", "ServarrBaseModel", "ServarrClient", "TagPayload"]
