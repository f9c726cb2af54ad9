"""Cross-system matching of library items against watch and request data.

Movies and shows are matched the same way; only the identifier differs
(TMDB ids for movies, TVDB ids for shows). ``IdentifierScheme`` captures
that difference so none of the matchers branch on media type.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from reclaimr.domain.model import MatchStatus, MediaType

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableMapping
    from datetime import datetime

    from reclaimr.domain.model import MediaItem
    from reclaimr.domain.ports import MediaRequest, PlayHistoryEntry, WatchRecord

log = getLogger(__name__)

REQUEST_STATUS_APPROVED: Final[int] = 2
REQUEST_STATUS_AVAILABLE: Final[int] = 5
ACTIVE_REQUEST_STATUSES: Final[frozenset[int]] = frozenset(
    {REQUEST_STATUS_APPROVED, REQUEST_STATUS_AVAILABLE}
)

NOT_FOUND_INFO: Final[str] = "Item not found in media server library"


@dataclass(slots=True, frozen=True)
class IdentifierScheme:
    """Which external id links an item of ``media_type`` to other systems."""

    media_type: MediaType
    attribute: str
    provider_key: str
    label: str

    def item_identifier(self, record: MediaItem | MediaRequest) -> int | None:
        return getattr(record, self.attribute)


MOVIE_IDENTIFIERS = IdentifierScheme(MediaType.MOVIE, "tmdb_id", "Tmdb", "TMDB")
SERIES_IDENTIFIERS = IdentifierScheme(MediaType.TV_SHOW, "tvdb_id", "Tvdb", "TVDB")

_SCHEMES: Final[dict[MediaType, IdentifierScheme]] = {
    MediaType.MOVIE: MOVIE_IDENTIFIERS,
    MediaType.TV_SHOW: SERIES_IDENTIFIERS,
}


def identifier_scheme(media_type: MediaType) -> IdentifierScheme:
    return _SCHEMES[media_type]


@dataclass(slots=True)
class MatchCounts:
    matched: int = 0
    not_found: int = 0
    mismatched: int = 0

    @property
    def total(self) -> int:
        return self.matched + self.not_found + self.mismatched


def normalize_title(title: str) -> str:
    return title.strip().lower()


def match_watch_records(
    items: MutableMapping[str, MediaItem],
    records: Iterable[WatchRecord],
    scheme: IdentifierScheme,
) -> MatchCounts:
    """Copy playback state from the media server onto items of one type.

    Exact matches use the scheme's provider id. A miss falls back to a title
    lookup that only records a ``metadata_mismatch`` diagnostic; it never
    copies playback state from a title match.
    """

    by_identifier: dict[str, WatchRecord] = {}
    by_title: dict[str, WatchRecord] = {}
    for record in records:
        provider_id = record.provider_ids.get(scheme.provider_key)
        if provider_id:
            by_identifier[provider_id] = record
        by_title[normalize_title(record.name)] = record

    counts = MatchCounts()
    for item in items.values():
        if item.type is not scheme.media_type:
            continue

        identifier = scheme.item_identifier(item)
        exact = by_identifier.get(str(identifier)) if identifier is not None else None
        if exact is not None:
            item.jellyfin_id = exact.item_id
            item.watch_count = exact.play_count
            if exact.last_played is not None:
                item.last_watched = exact.last_played
            item.match_status = MatchStatus.MATCHED
            item.match_info = ""
            counts.matched += 1
            continue

        by_name = by_title.get(normalize_title(item.title))
        if by_name is not None:
            server_id = by_name.provider_ids.get(scheme.provider_key) or "none"
            item.match_status = MatchStatus.METADATA_MISMATCH
            item.match_info = (
                f"Media server has different metadata "
                f"({scheme.label} {server_id} instead of {identifier})"
            )
            counts.mismatched += 1
            log.warning(
                f"Metadata mismatch for {item.title!r}: catalog {scheme.label} {identifier}, "
                f"media server {scheme.label} {server_id}"
            )
            continue

        item.match_status = MatchStatus.NOT_FOUND
        item.match_info = NOT_FOUND_INFO
        counts.not_found += 1

    return counts


def apply_play_history(
    items: MutableMapping[str, MediaItem],
    entries: Iterable[PlayHistoryEntry],
) -> int:
    """Fold per-play history into items already linked to a media server id.

    The newest play wins for ``last_watched`` and the number of plays
    replaces ``watch_count``. Returns the number of items changed.
    """

    latest: dict[str, datetime] = {}
    plays: dict[str, int] = {}
    for entry in entries:
        current = latest.get(entry.item_id)
        if current is None or entry.played_at > current:
            latest[entry.item_id] = entry.played_at
        plays[entry.item_id] = plays.get(entry.item_id, 0) + 1

    updated = 0
    for item in items.values():
        if not item.jellyfin_id or item.jellyfin_id not in latest:
            continue
        changed = False
        played_at = latest[item.jellyfin_id]
        if item.last_watched is None or played_at > item.last_watched:
            item.last_watched = played_at
            changed = True
        count = plays[item.jellyfin_id]
        if count > 0 and count != item.watch_count:
            item.watch_count = count
            changed = True
        if changed:
            updated += 1
    return updated


def match_requests(
    items: MutableMapping[str, MediaItem],
    requests: Iterable[MediaRequest],
) -> int:
    """Mark items with an approved or available request.

    Request flags are rebuilt from scratch on each call so withdrawn requests
    stop protecting their items. Returns the number of requests matched.
    """

    for item in items.values():
        item.is_requested = False
        item.requester = None

    matched = 0
    for request in requests:
        if request.status not in ACTIVE_REQUEST_STATUSES:
            continue
        for item in items.values():
            if request.media_type is not None and request.media_type is not item.type:
                continue
            scheme = identifier_scheme(item.type)
            identifier = scheme.item_identifier(item)
            if identifier is None or identifier != scheme.item_identifier(request):
                continue
            item.is_requested = True
            item.requester = request.requester if request.requester.has_identifier else None
            matched += 1
            log.debug(f"Matched request to {item.title!r} (requester {request.requester})")
            break
    return matched
