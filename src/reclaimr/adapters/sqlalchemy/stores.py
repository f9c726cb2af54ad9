"""Exclusion store and job ledger backed by SQLAlchemy Core."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from reclaimr.config.settings import DEFAULT_MAX_JOBS
from reclaimr.domain.errors import PersistenceError
from reclaimr.domain.model import (
    ExclusionRecord,
    ExternalType,
    JobKind,
    JobRecord,
    JobStatus,
    MediaType,
)

from .tables import exclusion_table, job_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine, RowMapping

log = getLogger(__name__)


class SqlAlchemyExclusionStore:
    """Exclusions held in memory and written through to the database.

    Every mutation is committed before it becomes visible to readers.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = threading.Lock()
        self._records: dict[str, ExclusionRecord] = self._load()
        log.info(f"Loaded {len(self._records)} exclusions")

    def is_excluded(self, external_id: str) -> bool:
        with self._lock:
            return external_id in self._records

    def add(self, record: ExclusionRecord) -> None:
        with self._lock:
            try:
                with self._engine.begin() as conn:
                    conn.execute(
                        delete(exclusion_table).where(
                            exclusion_table.c.external_id == record.external_id
                        )
                    )
                    conn.execute(insert(exclusion_table).values(**_exclusion_values(record)))
            except SQLAlchemyError as exc:
                raise PersistenceError(
                    f"Failed to save exclusion {record.external_id}: {exc}"
                ) from exc
            self._records[record.external_id] = record

    def remove(self, external_id: str) -> None:
        with self._lock:
            try:
                with self._engine.begin() as conn:
                    conn.execute(
                        delete(exclusion_table).where(
                            exclusion_table.c.external_id == external_id
                        )
                    )
            except SQLAlchemyError as exc:
                raise PersistenceError(f"Failed to remove exclusion {external_id}: {exc}") from exc
            self._records.pop(external_id, None)

    def get(self, external_id: str) -> ExclusionRecord | None:
        with self._lock:
            return self._records.get(external_id)

    def get_all(self) -> list[ExclusionRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda record: record.excluded_at, reverse=True)

    def _load(self) -> dict[str, ExclusionRecord]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(select(exclusion_table)).mappings().all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load exclusions: {exc}") from exc
        return {row["external_id"]: _exclusion_from_row(row) for row in rows}


class SqlAlchemyJobLedger:
    """Job history, most recent first, capped at ``max_jobs`` rows."""

    def __init__(self, engine: Engine, *, max_jobs: int = DEFAULT_MAX_JOBS) -> None:
        self._engine = engine
        self._max_jobs = max_jobs
        self._lock = threading.Lock()

    def add(self, job: JobRecord) -> None:
        with self._lock:
            try:
                with self._engine.begin() as conn:
                    conn.execute(insert(job_table).values(**_job_values(job)))
                    stale = (
                        select(job_table.c.id)
                        .order_by(job_table.c.started_at.desc())
                        .offset(self._max_jobs)
                    )
                    stale_ids = list(conn.execute(stale).scalars())
                    if stale_ids:
                        conn.execute(delete(job_table).where(job_table.c.id.in_(stale_ids)))
                        log.debug(f"Evicted {len(stale_ids)} old jobs")
            except SQLAlchemyError as exc:
                raise PersistenceError(f"Failed to save job {job.id}: {exc}") from exc

    def update(self, job: JobRecord) -> None:
        values = _job_values(job)
        values.pop("id")
        with self._lock:
            try:
                with self._engine.begin() as conn:
                    result = conn.execute(
                        update(job_table).where(job_table.c.id == job.id).values(**values)
                    )
            except SQLAlchemyError as exc:
                raise PersistenceError(f"Failed to update job {job.id}: {exc}") from exc
        if result.rowcount == 0:
            log.debug(f"Ignoring update for unknown job {job.id}")

    def get(self, job_id: str) -> JobRecord | None:
        rows = self._select(job_table.c.id == job_id)
        return rows[0] if rows else None

    def get_all(self) -> list[JobRecord]:
        return self._select()

    def get_recent(self, limit: int) -> list[JobRecord]:
        if limit <= 0:
            return []
        return self._select(limit=limit)

    def get_latest(self, kind: JobKind | None = None) -> JobRecord | None:
        condition = job_table.c.kind == kind if kind is not None else None
        rows = self._select(condition, limit=1)
        return rows[0] if rows else None

    def _select(self, condition: Any = None, *, limit: int | None = None) -> list[JobRecord]:
        stmt = select(job_table).order_by(job_table.c.started_at.desc())
        if condition is not None:
            stmt = stmt.where(condition)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read jobs: {exc}") from exc
        return [_job_from_row(row) for row in rows]


def _exclusion_values(record: ExclusionRecord) -> dict[str, Any]:
    return {
        "external_id": record.external_id,
        "external_type": record.external_type,
        "media_type": record.media_type,
        "title": record.title,
        "excluded_at": record.excluded_at,
        "excluded_by": record.excluded_by,
        "reason": record.reason,
    }


def _exclusion_from_row(row: RowMapping) -> ExclusionRecord:
    return ExclusionRecord(
        external_id=row["external_id"],
        external_type=ExternalType(row["external_type"]),
        media_type=MediaType(row["media_type"]),
        title=row["title"],
        excluded_at=row["excluded_at"],
        excluded_by=row["excluded_by"],
        reason=row["reason"],
    )


def _job_values(job: JobRecord) -> dict[str, Any]:
    return {
        "id": job.id,
        "kind": job.kind,
        "status": job.status,
        "started_at": job.started_at,
        "completed_at": job.completed_at,
        "duration_ms": job.duration_ms,
        "summary": dict(job.summary),
        "error": job.error,
    }


def _job_from_row(row: RowMapping) -> JobRecord:
    return JobRecord(
        id=row["id"],
        kind=JobKind(row["kind"]),
        status=JobStatus(row["status"]),
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        duration_ms=row["duration_ms"],
        summary=dict(row["summary"] or {}),
        error=row["error"],
    )
