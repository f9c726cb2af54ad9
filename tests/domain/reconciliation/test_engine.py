from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from reclaimr.domain.errors import AlreadyRunningError, NotFoundError, SourceUnavailableError
from reclaimr.domain.model import (
    ExclusionRecord,
    ExternalType,
    JobKind,
    JobStatus,
    MediaType,
    Requester,
)
from reclaimr.domain.ports import MediaRequest, WatchRecord
from tests.helpers.fakes import (
    FakeMovieCatalog,
    FakePlayHistory,
    FakeRequestSource,
    FakeSeriesCatalog,
    FakeWatchHistory,
)
from tests.helpers.media import (
    NOW,
    days_ago,
    make_movie_entry,
    make_series_entry,
    make_settings,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from reclaimr.domain.reconciliation import ReconciliationEngine
    from tests.helpers.fakes import InMemoryExclusionStore, InMemoryJobLedger, RecordingCache

    type EngineFactory = Callable[..., ReconciliationEngine]


def _exclusion(external_id: str) -> ExclusionRecord:
    return ExclusionRecord(
        external_id=external_id,
        external_type=ExternalType.RADARR,
        media_type=MediaType.MOVIE,
        title="kept",
        excluded_at=NOW,
    )


def test_full_reconciliation_schedules_overdue_items(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(
        entries=[
            make_movie_entry(1, added_at=days_ago(200)),
            make_movie_entry(2, added_at=days_ago(5)),
        ]
    )
    engine = make_engine(movie_catalog=catalog)

    result = engine.full_reconciliation()

    assert result.succeeded
    assert result.kind is JobKind.FULL_SYNC
    assert result.summary["movies"] == 2
    assert result.summary["total_media"] == 2
    assert result.summary["scheduled_deletions"] == 1
    assert [c["id"] for c in result.summary["would_delete"]] == ["radarr-1"]
    assert result.summary["deleted_count"] == 0
    assert catalog.deleted == []


def test_dry_run_never_deletes_even_with_deletion_enabled(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(200))])
    engine = make_engine(
        make_settings(dry_run=True, enable_deletion=True),
        movie_catalog=catalog,
    )

    result = engine.full_reconciliation()

    assert result.summary["scheduled_deletions"] == 1
    assert result.summary["deleted_count"] == 0
    assert catalog.deleted == []


def test_deletion_runs_when_enabled_outside_dry_run(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(200))])
    watch = FakeWatchHistory()
    engine = make_engine(
        make_settings(dry_run=False, enable_deletion=True),
        movie_catalog=catalog,
        watch_history=watch,
    )

    result = engine.full_reconciliation()

    assert catalog.deleted == [(1, True)]
    assert watch.refreshes == 1
    assert result.summary["deleted_count"] == 1
    assert result.summary["deleted_items"][0]["id"] == "radarr-1"
    assert engine.get_media_by_id("radarr-1") is None


def test_failed_deletion_is_skipped_and_the_rest_proceed(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(
        entries=[make_movie_entry(n, added_at=days_ago(200)) for n in (1, 2, 3)],
        fail_ids={2},
    )
    engine = make_engine(make_settings(dry_run=False, enable_deletion=False), movie_catalog=catalog)
    engine.full_reconciliation()
    _, candidates = engine.compute_deletion_candidates()

    count, deleted = engine.execute_deletions(candidates)

    assert count == 2
    assert sorted(candidate.id for candidate in deleted) == ["radarr-1", "radarr-3"]
    assert sorted(catalog.deleted) == [(1, True), (3, True)]
    assert engine.get_media_by_id("radarr-2") is not None
    assert engine.get_media_by_id("radarr-1") is None


def test_candidate_without_id_is_skipped(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(200))])
    engine = make_engine(make_settings(enable_deletion=False), movie_catalog=catalog)
    engine.full_reconciliation()
    _, candidates = engine.compute_deletion_candidates()

    count, deleted = engine.execute_deletions([replace(candidates[0], id="")])

    assert (count, deleted) == (0, [])
    assert catalog.deleted == []
    assert engine.get_media_by_id("radarr-1") is not None


def test_out_of_range_retention_does_not_fail_the_run(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(30))])
    engine = make_engine(make_settings(movie_retention="5000000d"), movie_catalog=catalog)

    result = engine.full_reconciliation()

    assert result.succeeded
    assert result.summary["scheduled_deletions"] == 0


def test_excluded_items_are_never_candidates(
    make_engine: EngineFactory,
    exclusions: InMemoryExclusionStore,
) -> None:
    exclusions.add(_exclusion("radarr-1"))
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(500))])
    )

    result = engine.full_reconciliation()

    assert result.summary["scheduled_deletions"] == 0
    item = engine.get_media_by_id("radarr-1")
    assert item is not None
    assert item.is_excluded
    assert item.delete_after is None


def test_requested_items_are_protected_without_advanced_rules(
    make_engine: EngineFactory,
) -> None:
    requests = FakeRequestSource(
        requests=[
            MediaRequest(
                status=5,
                media_type=MediaType.MOVIE,
                tmdb_id=1001,
                requester=Requester(username="alice"),
            )
        ]
    )
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(500))]),
        request_source=requests,
    )

    result = engine.full_reconciliation()

    assert result.summary["scheduled_deletions"] == 0
    item = engine.get_media_by_id("radarr-1")
    assert item is not None
    assert item.is_requested
    assert item.requester == Requester(username="alice")


def test_watch_history_moves_the_deletion_date(make_engine: EngineFactory) -> None:
    watch = FakeWatchHistory(
        records={
            MediaType.MOVIE: [
                WatchRecord(
                    item_id="jf-1",
                    name="Movie 1",
                    provider_ids={"Tmdb": "1001"},
                    play_count=1,
                    last_played=days_ago(3),
                )
            ],
            MediaType.TV_SHOW: [],
        }
    )
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(200))]),
        watch_history=watch,
    )

    result = engine.full_reconciliation()

    assert result.summary["scheduled_deletions"] == 0
    item = engine.get_media_by_id("radarr-1")
    assert item is not None
    assert item.jellyfin_id == "jf-1"
    assert item.days_until_due == 87


def test_empty_library_has_no_candidates(make_engine: EngineFactory) -> None:
    engine = make_engine()

    assert engine.compute_deletion_candidates() == (0, [])
    result = engine.full_reconciliation()
    assert result.summary["total_media"] == 0
    assert result.summary["would_delete"] == []


def test_ingest_is_idempotent(make_engine: EngineFactory) -> None:
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1), make_movie_entry(2)])
    )

    assert engine.ingest_movies() == 2
    first = engine.get_media_library_snapshot()
    assert engine.ingest_movies() == 2

    assert engine.get_media_library_snapshot() == first


def test_ingest_drops_items_removed_from_their_catalog(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1), make_movie_entry(2)])
    series = FakeSeriesCatalog(entries=[make_series_entry(1)])
    engine = make_engine(movie_catalog=catalog, series_catalog=series)
    engine.ingest_movies()
    engine.ingest_series()

    catalog.entries = [make_movie_entry(2)]
    engine.ingest_movies()

    assert engine.get_media_by_id("radarr-1") is None
    assert engine.get_media_by_id("radarr-2") is not None
    assert engine.get_media_by_id("sonarr-1") is not None


def test_ingest_keeps_playback_state_across_runs(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1)])
    engine = make_engine(
        movie_catalog=catalog,
        play_history=FakePlayHistory(),
        watch_history=FakeWatchHistory(
            records={
                MediaType.MOVIE: [
                    WatchRecord(item_id="jf-1", name="Movie 1", provider_ids={"Tmdb": "1001"})
                ],
                MediaType.TV_SHOW: [],
            }
        ),
    )
    engine.full_reconciliation()

    engine.ingest_movies()

    item = engine.get_media_by_id("radarr-1")
    assert item is not None
    assert item.jellyfin_id == "jf-1"


def test_tag_fetch_failure_is_tolerated(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(
        entries=[make_movie_entry(1, tag_ids=(1,))],
        tags={1: "demo"},
        tag_error=RuntimeError("tags down"),
    )
    engine = make_engine(movie_catalog=catalog)

    assert engine.ingest_movies() == 1
    item = engine.get_media_by_id("radarr-1")
    assert item is not None
    assert item.tags == frozenset()


def test_partial_failure_completes_with_the_last_error(
    make_engine: EngineFactory,
    jobs: InMemoryJobLedger,
) -> None:
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(error=RuntimeError("boom")),
        series_catalog=FakeSeriesCatalog(entries=[make_series_entry(1)]),
        request_source=FakeRequestSource(error=RuntimeError("timeout")),
    )

    result = engine.full_reconciliation()

    assert result.summary["tv_shows"] == 1
    assert result.summary["source_errors"] == ["movie catalog: boom", "request service: timeout"]
    assert result.error == "request service: timeout"
    job = jobs.get(result.job_id)
    assert job is not None
    assert job.status is JobStatus.COMPLETED
    assert job.error == "request service: timeout"


def test_unexpected_failure_marks_the_job_failed(
    make_engine: EngineFactory,
    jobs: InMemoryJobLedger,
    cache: RecordingCache,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    engine = make_engine()

    def explode() -> None:
        raise RuntimeError("policy exploded")

    monkeypatch.setattr(engine, "apply_policy", explode)

    with pytest.raises(RuntimeError, match="policy exploded"):
        engine.full_reconciliation()

    job = jobs.get_latest(JobKind.FULL_SYNC)
    assert job is not None
    assert job.status is JobStatus.FAILED
    assert job.error == "policy exploded"
    assert job.completed_at == NOW
    assert cache.clears == 1


def test_overlapping_runs_are_rejected(make_engine: EngineFactory) -> None:
    engine = make_engine()
    engine._run_lock.acquire()  # noqa: SLF001
    try:
        with pytest.raises(AlreadyRunningError):
            engine.full_reconciliation()
        with pytest.raises(AlreadyRunningError):
            engine.incremental_reconciliation()
        with pytest.raises(AlreadyRunningError):
            engine.trigger_full_reconciliation()
        engine._scheduled_full()  # noqa: SLF001
        engine._scheduled_incremental()  # noqa: SLF001
    finally:
        engine._run_lock.release()  # noqa: SLF001


def test_start_and_stop(make_engine: EngineFactory, jobs: InMemoryJobLedger) -> None:
    engine = make_engine()

    engine.start()
    assert engine.is_running
    with pytest.raises(AlreadyRunningError):
        engine.start()

    engine.stop()
    assert not engine.is_running
    engine.stop()
    assert jobs.jobs == {}


def test_restart_scheduler_is_a_no_op_when_stopped(make_engine: EngineFactory) -> None:
    engine = make_engine()

    engine.restart_scheduler()

    assert not engine.is_running


def test_incremental_reconciliation_records_a_job(
    make_engine: EngineFactory,
    jobs: InMemoryJobLedger,
) -> None:
    watch = FakeWatchHistory(
        records={
            MediaType.MOVIE: [
                WatchRecord(item_id="jf-1", name="Movie 1", provider_ids={"Tmdb": "1001"})
            ],
            MediaType.TV_SHOW: [],
        }
    )
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1)]),
        watch_history=watch,
    )
    engine.ingest_movies()

    result = engine.incremental_reconciliation()

    assert result.kind is JobKind.INCREMENTAL_SYNC
    assert result.summary["movie"] == {"matched": 1, "not_found": 0, "mismatched": 0}
    job = jobs.get(result.job_id)
    assert job is not None
    assert job.status is JobStatus.COMPLETED


def test_incremental_failure_raises_source_unavailable(
    make_engine: EngineFactory,
    jobs: InMemoryJobLedger,
) -> None:
    engine = make_engine(watch_history=FakeWatchHistory(error=RuntimeError("offline")))

    with pytest.raises(SourceUnavailableError, match="media server: offline"):
        engine.incremental_reconciliation()

    job = jobs.get_latest(JobKind.INCREMENTAL_SYNC)
    assert job is not None
    assert job.status is JobStatus.FAILED


def test_delete_media_simulate_keeps_the_item(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1)])
    engine = make_engine(movie_catalog=catalog)
    engine.ingest_movies()

    engine.delete_media("radarr-1", simulate=True)

    assert catalog.deleted == []
    assert engine.get_media_by_id("radarr-1") is not None


def test_delete_media_unknown_id(make_engine: EngineFactory) -> None:
    engine = make_engine()

    with pytest.raises(NotFoundError):
        engine.delete_media("radarr-404", simulate=False)


def test_delete_media_tolerates_refresh_failure(make_engine: EngineFactory) -> None:
    series = FakeSeriesCatalog(entries=[make_series_entry(4)])
    watch = FakeWatchHistory(refresh_error=RuntimeError("refresh failed"))
    engine = make_engine(series_catalog=series, watch_history=watch)
    engine.ingest_series()

    engine.delete_media("sonarr-4", simulate=False)

    assert series.deleted == [(4, True)]
    assert watch.refreshes == 1
    assert engine.get_media_by_id("sonarr-4") is None


def test_delete_media_requires_the_owning_catalog(make_engine: EngineFactory) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1)])
    engine = make_engine(movie_catalog=catalog)
    engine.ingest_movies()
    engine.movie_catalog = None

    with pytest.raises(SourceUnavailableError, match="movie catalog not configured"):
        engine.delete_media("radarr-1", simulate=False)

    assert engine.get_media_by_id("radarr-1") is not None


def test_manual_trigger_losing_the_race_logs_one_line(
    make_engine: EngineFactory,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    engine = make_engine()

    def busy() -> None:
        raise AlreadyRunningError("A reconciliation is already in progress")

    monkeypatch.setattr(engine, "full_reconciliation", busy)

    with caplog.at_level("INFO"):
        engine.trigger_full_reconciliation().join(timeout=5)

    assert [record.getMessage() for record in caplog.records] == [
        "Skipping full reconciliation: another run is in progress"
    ]
    assert caplog.records[0].exc_info is None


def test_exclusion_round_trip(
    make_engine: EngineFactory,
    exclusions: InMemoryExclusionStore,
) -> None:
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(200))])
    )
    engine.full_reconciliation()

    record = engine.add_exclusion("radarr-1", "family favourite")

    assert record.external_type is ExternalType.RADARR
    assert record.media_type is MediaType.MOVIE
    assert record.excluded_at == NOW
    assert exclusions.is_excluded("radarr-1")
    item = engine.get_media_by_id("radarr-1")
    assert item is not None
    assert item.is_excluded
    assert engine.compute_deletion_candidates() == (0, [])

    engine.remove_exclusion("radarr-1")

    assert not exclusions.is_excluded("radarr-1")
    count, candidates = engine.compute_deletion_candidates()
    assert count == 1
    assert candidates[0].id == "radarr-1"


def test_exclusion_of_unknown_media(make_engine: EngineFactory) -> None:
    engine = make_engine()

    with pytest.raises(NotFoundError):
        engine.add_exclusion("radarr-9")
    with pytest.raises(NotFoundError):
        engine.remove_exclusion("radarr-9")


def test_leaving_soon_is_cached_until_the_next_run(
    make_engine: EngineFactory,
    cache: RecordingCache,
) -> None:
    catalog = FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(80))])
    engine = make_engine(movie_catalog=catalog)

    result = engine.full_reconciliation()

    assert result.summary["leaving_soon_count"] == 1
    assert cache.clears == 1
    leaving = engine.get_leaving_soon()
    assert [item.id for item in leaving] == ["radarr-1"]
    assert leaving[0].days_until_due == 10
    assert "leaving_soon" in cache.values

    catalog.entries = []
    engine.full_reconciliation()

    assert cache.clears == 2
    assert engine.get_leaving_soon() == []


def test_get_status_reports_counts_and_last_runs(
    make_engine: EngineFactory,
    exclusions: InMemoryExclusionStore,
) -> None:
    exclusions.add(_exclusion("radarr-2"))
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1), make_movie_entry(2)]),
        series_catalog=FakeSeriesCatalog(entries=[make_series_entry(1)]),
    )
    engine.full_reconciliation()

    status = engine.get_status()

    assert not status.running
    assert status.media_count == 3
    assert status.movies_count == 2
    assert status.tv_shows_count == 1
    assert status.excluded_count == 1
    assert status.full_interval == 3600
    assert status.incremental_interval == 900
    assert status.last_full_sync == NOW
    assert status.last_incremental_sync is None


def test_job_ledger_failures_do_not_abort_runs(
    make_engine: EngineFactory,
    jobs: InMemoryJobLedger,
) -> None:
    jobs.fail_writes = True
    engine = make_engine(movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1)]))

    result = engine.full_reconciliation()

    assert result.succeeded
    assert result.summary["movies"] == 1
    assert jobs.jobs == {}


def test_reapply_retention_rules_uses_current_exclusions(
    make_engine: EngineFactory,
    exclusions: InMemoryExclusionStore,
    cache: RecordingCache,
) -> None:
    engine = make_engine(
        movie_catalog=FakeMovieCatalog(entries=[make_movie_entry(1, added_at=days_ago(200))])
    )
    engine.full_reconciliation()
    exclusions.add(_exclusion("radarr-1"))

    engine.reapply_retention_rules()

    assert engine.compute_deletion_candidates() == (0, [])
    assert cache.clears == 2
