"""Radarr movie catalog adapter."""

from __future__ import annotations

from .client import RadarrAPIError, RadarrClient
from .schema import MoviePayload
from .translator import parse_movie

__all__ = ["MoviePayload", "RadarrAPIError", "RadarrClient", "parse_movie"]
