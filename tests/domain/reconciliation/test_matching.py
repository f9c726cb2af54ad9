from __future__ import annotations

from reclaimr.domain.model import MatchStatus, MediaType, Requester
from reclaimr.domain.ports import MediaRequest, PlayHistoryEntry, WatchRecord
from reclaimr.domain.reconciliation.matching import (
    MOVIE_IDENTIFIERS,
    NOT_FOUND_INFO,
    SERIES_IDENTIFIERS,
    apply_play_history,
    match_requests,
    match_watch_records,
)
from tests.helpers.media import days_ago, make_movie, make_show


def test_exact_match_copies_playback_state() -> None:
    movie = make_movie(1, tmdb_id=550)
    items = {movie.id: movie}
    records = [
        WatchRecord(
            item_id="jf-1",
            name="Fight Club",
            provider_ids={"Tmdb": "550"},
            play_count=3,
            last_played=days_ago(2),
        )
    ]

    counts = match_watch_records(items, records, MOVIE_IDENTIFIERS)

    assert (counts.matched, counts.not_found, counts.mismatched) == (1, 0, 0)
    assert movie.jellyfin_id == "jf-1"
    assert movie.watch_count == 3
    assert movie.last_watched == days_ago(2)
    assert movie.match_status is MatchStatus.MATCHED


def test_title_fallback_only_records_mismatch() -> None:
    movie = make_movie(1, title="Fight Club", tmdb_id=550)
    items = {movie.id: movie}
    records = [
        WatchRecord(
            item_id="jf-1",
            name="  fight club ",
            provider_ids={"Tmdb": "551"},
            play_count=3,
            last_played=days_ago(2),
        )
    ]

    counts = match_watch_records(items, records, MOVIE_IDENTIFIERS)

    assert counts.mismatched == 1
    assert movie.match_status is MatchStatus.METADATA_MISMATCH
    assert movie.match_info == "Media server has different metadata (TMDB 551 instead of 550)"
    assert movie.jellyfin_id is None
    assert movie.watch_count == 0


def test_unmatched_item_is_flagged_not_found() -> None:
    show = make_show(1)
    items = {show.id: show}

    counts = match_watch_records(items, [], SERIES_IDENTIFIERS)

    assert counts.not_found == 1
    assert show.match_status is MatchStatus.NOT_FOUND
    assert show.match_info == NOT_FOUND_INFO


def test_scheme_only_touches_its_media_type() -> None:
    movie = make_movie(1, tmdb_id=10)
    show = make_show(1, tvdb_id=10)
    items = {movie.id: movie, show.id: show}
    records = [WatchRecord(item_id="jf-show", name="Show 1", provider_ids={"Tvdb": "10"})]

    counts = match_watch_records(items, records, SERIES_IDENTIFIERS)

    assert counts.total == 1
    assert show.jellyfin_id == "jf-show"
    assert movie.match_status is None


def test_play_history_keeps_latest_play_and_counts() -> None:
    movie = make_movie(1, jellyfin_id="jf-1", last_watched=days_ago(10), watch_count=1)
    other = make_movie(2)
    items = {movie.id: movie, other.id: other}
    entries = [
        PlayHistoryEntry(item_id="jf-1", played_at=days_ago(5)),
        PlayHistoryEntry(item_id="jf-1", played_at=days_ago(1)),
        PlayHistoryEntry(item_id="jf-unknown", played_at=days_ago(1)),
    ]

    updated = apply_play_history(items, entries)

    assert updated == 1
    assert movie.last_watched == days_ago(1)
    assert movie.watch_count == 2
    assert other.last_watched is None


def test_match_requests_uses_identifier_per_type_and_active_statuses() -> None:
    movie = make_movie(1, tmdb_id=100)
    show = make_show(1, tvdb_id=200)
    pending = make_movie(2, tmdb_id=300)
    items = {movie.id: movie, show.id: show, pending.id: pending}
    requests = [
        MediaRequest(
            status=2,
            media_type=MediaType.MOVIE,
            tmdb_id=100,
            requester=Requester(user_id=42, username="alice"),
        ),
        MediaRequest(status=5, media_type=MediaType.TV_SHOW, tvdb_id=200),
        MediaRequest(status=1, media_type=MediaType.MOVIE, tmdb_id=300),
    ]

    matched = match_requests(items, requests)

    assert matched == 2
    assert movie.is_requested
    assert movie.requester == Requester(user_id=42, username="alice")
    assert show.is_requested
    assert show.requester is None
    assert not pending.is_requested


def test_match_requests_resets_withdrawn_requests() -> None:
    movie = make_movie(1, tmdb_id=100, is_requested=True, requester=Requester(user_id=1))
    items = {movie.id: movie}

    assert match_requests(items, []) == 0
    assert not movie.is_requested
    assert movie.requester is None
