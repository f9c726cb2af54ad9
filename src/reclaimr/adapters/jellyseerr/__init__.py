"""Jellyseerr request service adapter."""

from __future__ import annotations

from .client import JellyseerrAPIError, JellyseerrClient
from .schema import RequestPage, RequestPayload
from .translator import parse_request, resolve_requester

__all__ = [
    "JellyseerrAPIError",
    "JellyseerrClient",
    "RequestPage",
    "RequestPayload",
    "parse_request",
    "resolve_requester",
]
