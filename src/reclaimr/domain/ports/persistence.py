"""Ports for persistence and caching."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from reclaimr.domain.model import ExclusionRecord, JobKind, JobRecord


@runtime_checkable
class ExclusionStore(Protocol):
    def is_excluded(self, external_id: str) -> bool: ...

    def add(self, record: ExclusionRecord) -> None: ...

    def remove(self, external_id: str) -> None: ...

    def get(self, external_id: str) -> ExclusionRecord | None: ...

    def get_all(self) -> list[ExclusionRecord]: ...


@runtime_checkable
class JobLedger(Protocol):
    def add(self, job: JobRecord) -> None: ...

    def update(self, job: JobRecord) -> None: ...

    def get(self, job_id: str) -> JobRecord | None: ...

    def get_all(self) -> list[JobRecord]: ...

    def get_recent(self, limit: int) -> list[JobRecord]: ...

    def get_latest(self, kind: JobKind | None = None) -> JobRecord | None: ...


@runtime_checkable
class SharedCache(Protocol):
    """Cache for derived read-side data, invalidated after every full run."""

    def get_or_set[T](self, key: Hashable, factory: Callable[[], T]) -> T: ...

    def clear(self) -> None: ...


__all__ = ["ExclusionStore", "JobLedger", "SharedCache"]
