"""Sonarr TV catalog adapter."""

from __future__ import annotations

from .client import SonarrAPIError, SonarrClient
from .schema import SeriesPayload
from .translator import parse_series

__all__ = ["SeriesPayload", "SonarrAPIError", "SonarrClient", "parse_series"]
