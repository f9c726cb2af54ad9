"""Reconciliation engine: owns the media library and drives every sync run.

A full run ingests each configured source in turn, then applies exclusions,
evaluates retention, computes deletion candidates and, when deletion is
enabled outside dry-run mode, removes them. Source failures are logged and
recorded on the job but never abort the run.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from reclaimr.domain.clock import Clock, utcnow
from reclaimr.domain.errors import (
    AlreadyRunningError,
    NotFoundError,
    PersistenceError,
    SourceUnavailableError,
)
from reclaimr.domain.model import (
    DeletionCandidate,
    ExclusionRecord,
    JobKind,
    JobRecord,
    JobStatus,
    MediaType,
    RuleType,
)
from reclaimr.domain.retention import RulesEngine

from .ingest import build_movie_item, build_series_item, merge_catalog_item
from .library import MediaLibrary
from .matching import (
    MOVIE_IDENTIFIERS,
    SERIES_IDENTIFIERS,
    MatchCounts,
    apply_play_history,
    match_requests,
    match_watch_records,
)
from .scheduler import RecurringTask, run_detached

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from datetime import datetime

    from reclaimr.config.settings import Settings
    from reclaimr.domain.model import MediaItem
    from reclaimr.domain.ports import (
        CatalogEntry,
        ConfigProvider,
        ExclusionStore,
        JobLedger,
        MovieCatalog,
        PlayHistorySource,
        RequestSource,
        SeriesCatalog,
        SharedCache,
        WatchHistorySource,
    )

log = getLogger(__name__)

MAX_PREVIEW_CANDIDATES: Final[int] = 100
STOP_JOIN_TIMEOUT_SECONDS: Final[float] = 5.0
STATUS_JOB_WINDOW: Final[int] = 10
LEAVING_SOON_CACHE_KEY: Final[str] = "leaving_soon"


@dataclass(slots=True)
class ReconciliationResult:
    job_id: str
    kind: JobKind
    summary: dict[str, Any] = field(default_factory=dict)
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return not self.error


@dataclass(slots=True, frozen=True)
class EngineStatus:
    running: bool
    media_count: int
    movies_count: int
    tv_shows_count: int
    excluded_count: int
    full_interval: int
    incremental_interval: int
    last_full_sync: datetime | None = None
    last_incremental_sync: datetime | None = None


class ReconciliationEngine:
    """Coordinate ingest, policy and deletion over a shared media library."""

    def __init__(
        self,
        *,
        config_provider: ConfigProvider,
        exclusions: ExclusionStore,
        jobs: JobLedger,
        movie_catalog: MovieCatalog | None = None,
        series_catalog: SeriesCatalog | None = None,
        watch_history: WatchHistorySource | None = None,
        play_history: PlayHistorySource | None = None,
        request_source: RequestSource | None = None,
        cache: SharedCache | None = None,
        rules: RulesEngine | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.config_provider = config_provider
        self.exclusions = exclusions
        self.jobs = jobs
        self.movie_catalog = movie_catalog
        self.series_catalog = series_catalog
        self.watch_history = watch_history
        self.play_history = play_history
        self.request_source = request_source
        self.cache = cache
        self.clock = clock
        self.rules = rules or RulesEngine(config_provider, exclusions, clock)

        self._library = MediaLibrary()
        self._running = False
        self._running_lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._tasks: list[RecurringTask] = []

    # -- lifecycle ---------------------------------------------------------

    @property
    def is_running(self) -> bool:
        with self._running_lock:
            return self._running

    def start(self) -> None:
        """Arm the full and incremental loops; optionally sync right away."""

        with self._running_lock:
            if self._running:
                raise AlreadyRunningError("Reconciliation engine is already running")
            sync = self.config_provider().sync
            self._stop_event = threading.Event()
            self._tasks = [
                RecurringTask(
                    "full-sync", sync.full_interval, self._scheduled_full, self._stop_event
                ),
                RecurringTask(
                    "incremental-sync",
                    sync.incremental_interval,
                    self._scheduled_incremental,
                    self._stop_event,
                ),
            ]
            for task in self._tasks:
                task.start()
            self._running = True

        log.info(
            f"Reconciliation engine started (full every {sync.full_interval}s, "
            f"incremental every {sync.incremental_interval}s, auto_start={sync.auto_start})"
        )
        if sync.auto_start:
            run_detached("initial-sync", self._scheduled_full)

    def stop(self) -> None:
        """Stop scheduling; a run already in progress finishes on its own."""

        with self._running_lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.join(timeout=STOP_JOIN_TIMEOUT_SECONDS)
        log.info("Reconciliation engine stopped")

    def restart_scheduler(self) -> None:
        """Re-read intervals from configuration by restarting a running scheduler."""

        if not self.is_running:
            log.info("Scheduler not running, skipping restart")
            return
        self.stop()
        self.start()

    def trigger_full_reconciliation(self) -> threading.Thread:
        """Start a full run in the background and return immediately."""

        if self._run_lock.locked():
            raise AlreadyRunningError("A reconciliation is already in progress")
        return run_detached("manual-sync", self._scheduled_full)

    def _scheduled_full(self) -> None:
        try:
            self.full_reconciliation()
        except AlreadyRunningError:
            log.info("Skipping full reconciliation: another run is in progress")

    def _scheduled_incremental(self) -> None:
        try:
            self.incremental_reconciliation()
        except AlreadyRunningError:
            log.info("Skipping incremental reconciliation: another run is in progress")

    # -- runs --------------------------------------------------------------

    def full_reconciliation(self) -> ReconciliationResult:
        if not self._run_lock.acquire(blocking=False):
            raise AlreadyRunningError("A reconciliation is already in progress")
        try:
            return self._full_reconciliation()
        finally:
            self._run_lock.release()

    def incremental_reconciliation(self) -> ReconciliationResult:
        """Refresh playback state from the media server only."""

        if not self._run_lock.acquire(blocking=False):
            raise AlreadyRunningError("A reconciliation is already in progress")
        try:
            return self._incremental_reconciliation()
        finally:
            self._run_lock.release()

    def _full_reconciliation(self) -> ReconciliationResult:
        settings = self.config_provider()
        job = self._open_job(JobKind.FULL_SYNC)
        log.info(f"Starting full reconciliation (job {job.id})")

        try:
            summary, last_error = self._reconcile(settings)
        except Exception as exc:
            job.finish(JobStatus.FAILED, completed_at=self.clock(), error=str(exc))
            self._save_job(job)
            log.exception(f"Full reconciliation {job.id} failed")
            raise
        else:
            job.summary = summary
            job.finish(JobStatus.COMPLETED, completed_at=self.clock(), error=last_error)
            self._save_job(job)
        finally:
            if self.cache is not None:
                self.cache.clear()

        log.info(
            f"Full reconciliation {job.id} completed in {job.duration_ms}ms: "
            f"movies={summary['movies']}, tv_shows={summary['tv_shows']}, "
            f"scheduled={summary['scheduled_deletions']}, deleted={summary['deleted_count']}, "
            f"dry_run={settings.app.dry_run}, enable_deletion={settings.app.enable_deletion}"
        )
        return ReconciliationResult(
            job_id=job.id, kind=job.kind, summary=summary, error=last_error
        )

    def _reconcile(self, settings: Settings) -> tuple[dict[str, Any], str]:
        errors: list[str] = []
        movies = tv_shows = 0

        if self.movie_catalog is not None:
            movies = self._run_source_step("movie catalog", self.ingest_movies, errors) or 0
        if self.series_catalog is not None:
            tv_shows = self._run_source_step("TV catalog", self.ingest_series, errors) or 0
        if self.watch_history is not None:
            self._run_source_step("media server", self.match_watch_history, errors)
        if self.play_history is not None:
            self._run_source_step("play history", self.apply_play_history, errors)
        if self.request_source is not None:
            self._run_source_step("request service", self.match_requests, errors)
        elif settings.enabled_rules(RuleType.USER):
            log.warning(
                "User rules are configured but no request service is enabled; "
                "they will not match anything"
            )

        self.apply_exclusions()
        self.apply_policy()

        scheduled, candidates = self.compute_deletion_candidates()
        leaving_soon = self._count_leaving_soon(settings.app.leaving_soon_days)

        deleted: list[DeletionCandidate] = []
        if settings.app.enable_deletion and not settings.app.dry_run and candidates:
            _, deleted = self.execute_deletions(candidates)

        summary: dict[str, Any] = {
            "movies": movies,
            "tv_shows": tv_shows,
            "total_media": self.get_media_count(),
            "scheduled_deletions": scheduled,
            "leaving_soon_count": leaving_soon,
            "dry_run": settings.app.dry_run,
            "enable_deletion": settings.app.enable_deletion,
            "would_delete": [c.to_summary() for c in candidates[:MAX_PREVIEW_CANDIDATES]],
            "deleted_count": len(deleted),
            "deleted_items": [c.to_summary() for c in deleted],
            "source_errors": list(errors),
        }
        return summary, errors[-1] if errors else ""

    def _incremental_reconciliation(self) -> ReconciliationResult:
        job = self._open_job(JobKind.INCREMENTAL_SYNC)
        log.debug(f"Starting incremental reconciliation (job {job.id})")
        summary: dict[str, Any] = {}
        try:
            if self.watch_history is not None:
                counts = self.match_watch_history()
                summary = {
                    str(media_type): {
                        "matched": c.matched,
                        "not_found": c.not_found,
                        "mismatched": c.mismatched,
                    }
                    for media_type, c in counts.items()
                }
        except Exception as exc:
            job.finish(JobStatus.FAILED, completed_at=self.clock(), error=str(exc))
            self._save_job(job)
            raise SourceUnavailableError("media server", str(exc)) from exc
        job.summary = summary
        job.finish(JobStatus.COMPLETED, completed_at=self.clock())
        self._save_job(job)
        log.debug(f"Incremental reconciliation {job.id} completed in {job.duration_ms}ms")
        return ReconciliationResult(job_id=job.id, kind=job.kind, summary=summary)

    def _run_source_step[T](
        self,
        source: str,
        step: Callable[[], T],
        errors: list[str],
    ) -> T | None:
        try:
            return step()
        except Exception as exc:  # noqa: BLE001
            error = SourceUnavailableError(source, str(exc))
            log.error(f"Failed to sync {source}: {exc}")
            errors.append(str(error))
            return None

    # -- ingest ------------------------------------------------------------

    def ingest_movies(self) -> int:
        """Pull every movie from the movie catalog; returns the number held on disk."""

        catalog = self.movie_catalog
        if catalog is None:
            raise SourceUnavailableError("movie catalog", "not configured")
        entries = catalog.list_movies()
        labels = self._fetch_tag_labels("movie catalog", catalog.list_tags)
        return self._ingest(entries, labels, build_movie_item, owner="radarr_id")

    def ingest_series(self) -> int:
        """Pull every series from the TV catalog; returns the number held on disk."""

        catalog = self.series_catalog
        if catalog is None:
            raise SourceUnavailableError("TV catalog", "not configured")
        entries = catalog.list_series()
        labels = self._fetch_tag_labels("TV catalog", catalog.list_tags)
        return self._ingest(entries, labels, build_series_item, owner="sonarr_id")

    def _fetch_tag_labels(
        self,
        source: str,
        fetch: Callable[[], Mapping[int, str]],
    ) -> Mapping[int, str]:
        try:
            return fetch()
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Failed to fetch {source} tags, continuing without tags: {exc}")
            return {}

    def _ingest(
        self,
        entries: Sequence[CatalogEntry],
        labels: Mapping[int, str],
        build: Callable[[CatalogEntry, Mapping[int, str]], MediaItem | None],
        *,
        owner: str,
    ) -> int:
        fresh = [item for entry in entries if (item := build(entry, labels)) is not None]
        fresh_ids = {item.id for item in fresh}
        with self._library.write() as items:
            for item in fresh:
                items[item.id] = merge_catalog_item(items.get(item.id), item)
            stale = [
                media_id
                for media_id, item in items.items()
                if getattr(item, owner) is not None and media_id not in fresh_ids
            ]
            for media_id in stale:
                del items[media_id]
        if stale:
            log.info(f"Dropped {len(stale)} items no longer held by their catalog")
        log.info(f"Ingested {len(fresh)} of {len(entries)} catalog entries")
        return len(fresh)

    # -- matching ----------------------------------------------------------

    def match_watch_history(self) -> dict[MediaType, MatchCounts]:
        source = self.watch_history
        if source is None:
            raise SourceUnavailableError("media server", "not configured")
        movie_records = source.list_watch_records(MediaType.MOVIE)
        show_records = source.list_watch_records(MediaType.TV_SHOW)

        with self._library.write() as items:
            counts = {
                MediaType.MOVIE: match_watch_records(items, movie_records, MOVIE_IDENTIFIERS),
                MediaType.TV_SHOW: match_watch_records(items, show_records, SERIES_IDENTIFIERS),
            }

        movie, show = counts[MediaType.MOVIE], counts[MediaType.TV_SHOW]
        log.info(
            f"Media server matching: movies {movie.matched}/{movie.total} matched "
            f"({movie.mismatched} mismatched, {movie.not_found} not found), "
            f"shows {show.matched}/{show.total} matched "
            f"({show.mismatched} mismatched, {show.not_found} not found)"
        )
        if movie.not_found or show.not_found:
            log.warning(
                f"{movie.not_found} movies and {show.not_found} shows not found on the media "
                "server; they may not be imported yet"
            )
        return counts

    def apply_play_history(self) -> int:
        source = self.play_history
        if source is None:
            raise SourceUnavailableError("play history", "not configured")
        entries = source.list_play_history()
        with self._library.write() as items:
            updated = apply_play_history(items, entries)
        log.info(f"Play history: {len(entries)} entries, {updated} items updated")
        return updated

    def match_requests(self) -> int:
        source = self.request_source
        if source is None:
            raise SourceUnavailableError("request service", "not configured")
        requests = source.list_requests()
        with self._library.write() as items:
            matched = match_requests(items, requests)
        log.info(f"Requests: {len(requests)} fetched, {matched} matched to library items")
        return matched

    # -- policy ------------------------------------------------------------

    def apply_exclusions(self) -> int:
        """Sync ``is_excluded`` with the exclusion store; returns the number changed."""

        changed = 0
        with self._library.write() as items:
            for item in items.values():
                external_id, _ = item.exclusion_key()
                excluded = self.exclusions.is_excluded(external_id)
                if item.is_excluded != excluded:
                    item.is_excluded = excluded
                    changed += 1
        log.debug(f"Applied exclusions: {changed} items changed")
        return changed

    def apply_policy(self) -> None:
        with self._library.write() as items:
            for media_id, item in items.items():
                items[media_id] = self.rules.annotate(item, self.rules.evaluate(item))
        log.debug(f"Applied retention rules to {len(self._library)} items")

    def reapply_retention_rules(self) -> None:
        """Re-evaluate exclusions and retention without re-ingesting."""

        log.info("Reapplying retention rules")
        self.apply_exclusions()
        self.apply_policy()
        if self.cache is not None:
            self.cache.clear()

    def compute_deletion_candidates(self) -> tuple[int, list[DeletionCandidate]]:
        """Items that are not excluded and whose deletion date has passed."""

        now = self.clock()
        with self._library.read() as items:
            candidates = [
                DeletionCandidate.from_item(item, now=now)
                for item in items.values()
                if not item.is_excluded
                and item.delete_after is not None
                and now > item.delete_after
            ]
        candidates.sort(key=lambda candidate: candidate.delete_after)
        return len(candidates), candidates

    def _count_leaving_soon(self, window_days: int) -> int:
        now = self.clock()
        with self._library.read() as items:
            return sum(
                1
                for item in items.values()
                if not item.is_excluded
                and item.delete_after is not None
                and item.delete_after > now
                and 0 < item.days_until_due <= window_days
            )

    # -- deletion ----------------------------------------------------------

    def execute_deletions(
        self,
        candidates: Sequence[DeletionCandidate],
    ) -> tuple[int, list[DeletionCandidate]]:
        log.info(f"Executing deletions for {len(candidates)} overdue items")
        deleted: list[DeletionCandidate] = []
        for candidate in candidates:
            if not candidate.id:
                log.warning(f"Skipping deletion candidate without an id: {candidate.title!r}")
                continue
            try:
                self.delete_media(candidate.id, simulate=False)
            except Exception as exc:  # noqa: BLE001
                log.error(f"Failed to delete {candidate.id} ({candidate.title}): {exc}")
                continue
            deleted.append(candidate)
            log.info(f"Deleted {candidate.id} ({candidate.title})")
        log.info(
            f"Deletion finished: {len(deleted)} deleted, {len(candidates) - len(deleted)} failed"
        )
        return len(deleted), deleted

    def delete_media(self, media_id: str, *, simulate: bool) -> None:
        """Remove an item from its owning catalog(s) and from the library."""

        item = self._library.get(media_id)
        if item is None:
            raise NotFoundError(f"media not found: {media_id}")

        if simulate:
            log.info(f"DRY RUN: would delete {media_id} ({item.title})")
            return

        if item.radarr_id is None and item.sonarr_id is None:
            raise SourceUnavailableError(f"no catalog owns {media_id}")
        if item.radarr_id is not None and self.movie_catalog is None:
            raise SourceUnavailableError(f"movie catalog not configured, cannot delete {media_id}")
        if item.sonarr_id is not None and self.series_catalog is None:
            raise SourceUnavailableError(f"TV catalog not configured, cannot delete {media_id}")

        if item.radarr_id is not None and self.movie_catalog is not None:
            self.movie_catalog.delete_movie(item.radarr_id, delete_files=True)
            log.info(f"Deleted movie {item.title!r} from the movie catalog")
        if item.sonarr_id is not None and self.series_catalog is not None:
            self.series_catalog.delete_series(item.sonarr_id, delete_files=True)
            log.info(f"Deleted series {item.title!r} from the TV catalog")

        if self.watch_history is not None:
            try:
                self.watch_history.refresh_library()
            except Exception as exc:  # noqa: BLE001
                log.warning(f"Media server refresh after deleting {media_id} failed: {exc}")

        with self._library.write() as items:
            items.pop(media_id, None)
        log.info(f"Media {media_id} ({item.title}) deleted")

    # -- exclusions --------------------------------------------------------

    def add_exclusion(self, media_id: str, reason: str = "") -> ExclusionRecord:
        item = self._library.get(media_id)
        if item is None:
            raise NotFoundError(f"media not found: {media_id}")
        external_id, external_type = item.exclusion_key()
        record = ExclusionRecord(
            external_id=external_id,
            external_type=external_type,
            media_type=item.type,
            title=item.title,
            excluded_at=self.clock(),
            excluded_by="api",
            reason=reason,
        )
        with self._library.write() as items:
            self.exclusions.add(record)
            if media_id in items:
                self._set_excluded(items, media_id, excluded=True)
        log.info(f"Excluded {media_id} ({item.title}) from deletion: {reason or 'no reason'}")
        return record

    def remove_exclusion(self, media_id: str) -> None:
        item = self._library.get(media_id)
        if item is None:
            raise NotFoundError(f"media not found: {media_id}")
        external_id, _ = item.exclusion_key()
        with self._library.write() as items:
            self.exclusions.remove(external_id)
            if media_id in items:
                self._set_excluded(items, media_id, excluded=False)
        log.info(f"Removed exclusion for {media_id} ({item.title})")

    def _set_excluded(
        self,
        items: dict[str, MediaItem],
        media_id: str,
        *,
        excluded: bool,
    ) -> None:
        item = replace(items[media_id], is_excluded=excluded)
        items[media_id] = self.rules.annotate(item, self.rules.evaluate(item))

    # -- queries -----------------------------------------------------------

    def get_media_list(self) -> list[MediaItem]:
        return self._library.items()

    def get_media_by_id(self, media_id: str) -> MediaItem | None:
        return self._library.get(media_id)

    def get_media_count(self) -> int:
        return len(self._library)

    def get_media_library_snapshot(self) -> dict[str, MediaItem]:
        return self._library.snapshot()

    def get_leaving_soon(self) -> list[MediaItem]:
        """Items due within the configured leaving-soon window, cached until the next run."""

        def compute() -> list[MediaItem]:
            return self.rules.get_leaving_soon(self._library.items())

        if self.cache is None:
            return compute()
        return list(self.cache.get_or_set(LEAVING_SOON_CACHE_KEY, compute))

    def get_status(self) -> EngineStatus:
        running = self.is_running
        sync = self.config_provider().sync
        with self._library.read() as items:
            media_count = len(items)
            movies = sum(1 for item in items.values() if item.type is MediaType.MOVIE)
            shows = sum(1 for item in items.values() if item.type is MediaType.TV_SHOW)
            excluded = sum(1 for item in items.values() if item.is_excluded)

        last_full: datetime | None = None
        last_incremental: datetime | None = None
        try:
            recent = self.jobs.get_recent(STATUS_JOB_WINDOW)
        except PersistenceError as exc:
            log.warning(f"Could not read recent jobs for status: {exc}")
            recent = []
        for job in recent:
            if job.completed_at is None:
                continue
            if job.kind is JobKind.FULL_SYNC and (
                last_full is None or job.completed_at > last_full
            ):
                last_full = job.completed_at
            elif job.kind is JobKind.INCREMENTAL_SYNC and (
                last_incremental is None or job.completed_at > last_incremental
            ):
                last_incremental = job.completed_at

        return EngineStatus(
            running=running,
            media_count=media_count,
            movies_count=movies,
            tv_shows_count=shows,
            excluded_count=excluded,
            full_interval=sync.full_interval,
            incremental_interval=sync.incremental_interval,
            last_full_sync=last_full,
            last_incremental_sync=last_incremental,
        )

    # -- job ledger --------------------------------------------------------

    def _open_job(self, kind: JobKind) -> JobRecord:
        job = JobRecord(
            id=str(uuid.uuid4()),
            kind=kind,
            status=JobStatus.RUNNING,
            started_at=self.clock(),
        )
        try:
            self.jobs.add(job)
        except PersistenceError as exc:
            log.warning(f"Failed to record job {job.id}: {exc}")
        return job

    def _save_job(self, job: JobRecord) -> None:
        try:
            self.jobs.update(job)
        except PersistenceError as exc:
            log.warning(f"Failed to update job {job.id}: {exc}")
