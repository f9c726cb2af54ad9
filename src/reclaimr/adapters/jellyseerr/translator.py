"""Translate Jellyseerr requests into domain media requests."""

from __future__ import annotations

from reclaimr.domain.model import MediaType, Requester
from reclaimr.domain.ports import MediaRequest

from .schema import RequestPayload, RequestUserPayload

_MEDIA_TYPES: dict[str, MediaType] = {
    "movie": MediaType.MOVIE,
    "tv": MediaType.TV_SHOW,
}


def resolve_requester(user: RequestUserPayload | None) -> Requester:
    """Pick the requester identity: display name, then Jellyfin login, then username."""

    if user is None:
        return Requester()
    username = user.display_name or user.jellyfin_username or user.username or None
    return Requester(
        user_id=user.id if user.id > 0 else None,
        username=username,
        email=user.email or None,
    )


def parse_request(payload: RequestPayload | dict[str, object]) -> MediaRequest:
    request = (
        payload if isinstance(payload, RequestPayload) else RequestPayload.model_validate(payload)
    )
    media = request.media
    media_type = _MEDIA_TYPES.get(media.media_type or "")
    return MediaRequest(
        status=request.status,
        media_type=media_type,
        tmdb_id=media.tmdb_id or None,
        tvdb_id=media.tvdb_id or None,
        requester=resolve_requester(request.requested_by),
    )
