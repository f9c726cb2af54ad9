"""Application wiring: build a reconciliation engine from configuration."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from reclaimr.adapters.jellyfin import JellyfinClient
from reclaimr.adapters.jellyseerr import JellyseerrClient
from reclaimr.adapters.jellystat import JellystatClient
from reclaimr.adapters.radarr import RadarrClient
from reclaimr.adapters.sonarr import SonarrClient
from reclaimr.adapters.sqlalchemy import (
    SqlAlchemyExclusionStore,
    SqlAlchemyJobLedger,
    create_all_tables,
    create_database_engine,
)
from reclaimr.common.cache import MemoryCache
from reclaimr.common.storage import get_config_path, get_database_uri
from reclaimr.config import FileConfigProvider
from reclaimr.domain.errors import NotFoundError
from reclaimr.domain.model import JobKind
from reclaimr.domain.reconciliation import ReconciliationEngine
from reclaimr.domain.reconciliation.scheduler import run_detached

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from reclaimr.config import Settings
    from reclaimr.domain.model import ExclusionRecord, JobRecord, MediaItem
    from reclaimr.domain.ports import (
        ConfigProvider,
        MovieCatalog,
        PlayHistorySource,
        RequestSource,
        SeriesCatalog,
        WatchHistorySource,
    )
    from reclaimr.domain.reconciliation import ReconciliationResult

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Sources:
    movie_catalog: MovieCatalog | None = None
    series_catalog: SeriesCatalog | None = None
    watch_history: WatchHistorySource | None = None
    play_history: PlayHistorySource | None = None
    request_source: RequestSource | None = None


@dataclass(slots=True, frozen=True)
class DryRunConfigProvider:
    """Wrap a provider so every snapshot has ``app.dry_run`` forced on."""

    inner: ConfigProvider

    def __call__(self) -> Settings:
        settings = self.inner()
        return replace(settings, app=replace(settings.app, dry_run=True))


@dataclass(slots=True)
class Application:
    engine: ReconciliationEngine
    config_provider: ConfigProvider
    exclusions: SqlAlchemyExclusionStore
    jobs: SqlAlchemyJobLedger
    database: Engine

    def close(self) -> None:
        self.engine.stop()
        self.database.dispose()


def build_sources(settings: Settings) -> Sources:
    """Instantiate an HTTP adapter for every enabled integration."""

    integrations = settings.integrations
    sources = Sources(
        movie_catalog=(
            RadarrClient(config=integrations.radarr) if integrations.radarr.enabled else None
        ),
        series_catalog=(
            SonarrClient(config=integrations.sonarr) if integrations.sonarr.enabled else None
        ),
        watch_history=(
            JellyfinClient(config=integrations.jellyfin) if integrations.jellyfin.enabled else None
        ),
        play_history=(
            JellystatClient(config=integrations.jellystat)
            if integrations.jellystat.enabled
            else None
        ),
        request_source=(
            JellyseerrClient(config=integrations.jellyseerr)
            if integrations.jellyseerr.enabled
            else None
        ),
    )
    enabled = [name for name, integration in integrations.items() if integration.enabled]
    log.info(f"Enabled integrations: {', '.join(enabled) or 'none'}")
    return sources


def build_application(
    *,
    config_path: Path | None = None,
    database_uri: str | None = None,
    config_provider: ConfigProvider | None = None,
    sources: Sources | None = None,
    dry_run: bool = False,
) -> Application:
    file_provider: FileConfigProvider | None = None
    if config_provider is None:
        file_provider = FileConfigProvider(config_path or get_config_path())
        config_provider = file_provider
    if dry_run:
        config_provider = DryRunConfigProvider(config_provider)

    settings = config_provider()
    database = create_database_engine(database_uri or get_database_uri())
    create_all_tables(database)
    exclusions = SqlAlchemyExclusionStore(database)
    jobs = SqlAlchemyJobLedger(database, max_jobs=settings.storage.max_jobs)
    active_sources = sources or build_sources(settings)

    engine = ReconciliationEngine(
        config_provider=config_provider,
        exclusions=exclusions,
        jobs=jobs,
        movie_catalog=active_sources.movie_catalog,
        series_catalog=active_sources.series_catalog,
        watch_history=active_sources.watch_history,
        play_history=active_sources.play_history,
        request_source=active_sources.request_source,
        cache=MemoryCache(),
    )

    if file_provider is not None:
        # Listeners fire from inside config reads, which can hold the library lock.
        file_provider.add_listener(
            lambda _settings: run_detached("config-reload", engine.reapply_retention_rules)
        )

    return Application(
        engine=engine,
        config_provider=config_provider,
        exclusions=exclusions,
        jobs=jobs,
        database=database,
    )


def sync_once(
    *,
    config_path: Path | None = None,
    database_uri: str | None = None,
    dry_run: bool = False,
) -> ReconciliationResult:
    """Run one full reconciliation and return its result."""

    application = build_application(
        config_path=config_path,
        database_uri=database_uri,
        dry_run=dry_run,
    )
    try:
        result = application.engine.full_reconciliation()
    finally:
        application.close()
    log.info(
        f"Finished full reconciliation {result.job_id}: "
        f"media={result.summary.get('total_media', 0)}, "
        f"scheduled={result.summary.get('scheduled_deletions', 0)}, "
        f"deleted={result.summary.get('deleted_count', 0)}"
    )
    return result


def serve(
    *,
    config_path: Path | None = None,
    database_uri: str | None = None,
    stop_event: threading.Event | None = None,
) -> None:
    """Start the scheduler and block until ``stop_event`` is set."""

    application = build_application(config_path=config_path, database_uri=database_uri)
    event = stop_event or threading.Event()
    application.engine.start()
    log.info("Scheduler running; press Ctrl+C to stop")
    try:
        event.wait()
    finally:
        application.close()


def list_exclusions(
    *,
    config_path: Path | None = None,
    database_uri: str | None = None,
) -> list[ExclusionRecord]:
    application = build_application(config_path=config_path, database_uri=database_uri)
    try:
        return application.exclusions.get_all()
    finally:
        application.close()


def exclude_media(
    media_id: str,
    *,
    reason: str = "",
    config_path: Path | None = None,
    database_uri: str | None = None,
) -> ExclusionRecord:
    """Protect a catalog item from deletion."""

    application = build_application(config_path=config_path, database_uri=database_uri)
    try:
        _load_catalogs(application.engine)
        return application.engine.add_exclusion(media_id, reason)
    finally:
        application.close()


def include_media(
    media_id: str,
    *,
    config_path: Path | None = None,
    database_uri: str | None = None,
) -> None:
    """Remove an exclusion, even if the item has left the catalog."""

    application = build_application(config_path=config_path, database_uri=database_uri)
    try:
        _load_catalogs(application.engine)
        try:
            application.engine.remove_exclusion(media_id)
        except NotFoundError:
            if application.exclusions.get(media_id) is None:
                raise
            application.exclusions.remove(media_id)
            log.info(f"Removed exclusion for {media_id} (no longer in the catalog)")
    finally:
        application.close()


def recent_jobs(
    *,
    limit: int = 10,
    config_path: Path | None = None,
    database_uri: str | None = None,
) -> tuple[JobRecord | None, JobRecord | None, list[JobRecord]]:
    """Latest full run, latest incremental run, and the ``limit`` most recent jobs."""

    application = build_application(config_path=config_path, database_uri=database_uri)
    try:
        jobs = application.jobs
        return (
            jobs.get_latest(JobKind.FULL_SYNC),
            jobs.get_latest(JobKind.INCREMENTAL_SYNC),
            jobs.get_recent(limit),
        )
    finally:
        application.close()


def preview_leaving_soon(
    *,
    config_path: Path | None = None,
    database_uri: str | None = None,
) -> list[MediaItem]:
    """Reconcile without deleting and return the items leaving soon."""

    application = build_application(
        config_path=config_path,
        database_uri=database_uri,
        dry_run=True,
    )
    try:
        application.engine.full_reconciliation()
        return application.engine.get_leaving_soon()
    finally:
        application.close()


def _load_catalogs(engine: ReconciliationEngine) -> None:
    if engine.movie_catalog is not None:
        engine.ingest_movies()
    if engine.series_catalog is not None:
        engine.ingest_series()
    engine.apply_exclusions()
