"""Persisted records: exclusions, jobs, and deletion candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .enums import ExternalType, JobKind, JobStatus, MediaType

if TYPE_CHECKING:
    from .media import MediaItem


@dataclass(slots=True, frozen=True)
class ExclusionRecord:
    """An item a user asked to keep regardless of retention rules."""

    external_id: str
    external_type: ExternalType
    media_type: MediaType
    title: str
    excluded_at: datetime
    excluded_by: str = "api"
    reason: str = ""


@dataclass(slots=True)
class JobRecord:
    """Audit entry for one reconciliation run."""

    id: str
    kind: JobKind
    status: JobStatus
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: int = 0
    summary: dict[str, Any] = field(default_factory=dict)
    error: str = ""

    def finish(self, status: JobStatus, *, completed_at: datetime, error: str = "") -> None:
        self.status = status
        self.completed_at = completed_at
        self.duration_ms = int((completed_at - self.started_at).total_seconds() * 1000)
        self.error = error


@dataclass(slots=True, frozen=True)
class DeletionCandidate:
    """An overdue, non-excluded item as reported for preview or deletion."""

    id: str
    title: str
    year: int | None
    type: MediaType
    file_size: int
    delete_after: datetime
    days_overdue: int
    reason: str
    last_watched: datetime | None
    is_requested: bool = False
    requested_by_user_id: int | None = None
    requested_by_username: str | None = None
    requested_by_email: str | None = None

    @classmethod
    def from_item(cls, item: MediaItem, *, now: datetime) -> DeletionCandidate:
        if item.delete_after is None:
            raise ValueError(f"Media {item.id} has no scheduled deletion")
        requester = item.requester
        return cls(
            id=item.id,
            title=item.title,
            year=item.year,
            type=item.type,
            file_size=item.file_size,
            delete_after=item.delete_after,
            days_overdue=whole_days(now - item.delete_after),
            reason=item.deletion_reason,
            last_watched=item.last_watched,
            is_requested=item.is_requested,
            requested_by_user_id=requester.user_id if requester else None,
            requested_by_username=requester.username if requester else None,
            requested_by_email=requester.email if requester else None,
        )

    def to_summary(self) -> dict[str, Any]:
        """Render as a JSON-friendly mapping for job summaries."""

        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "type": str(self.type),
            "file_size": self.file_size,
            "delete_after": self.delete_after.isoformat(),
            "days_overdue": self.days_overdue,
            "reason": self.reason,
            "last_watched": self.last_watched.isoformat() if self.last_watched else None,
            "is_requested": self.is_requested,
            "requested_by_user_id": self.requested_by_user_id,
            "requested_by_username": self.requested_by_username,
            "requested_by_email": self.requested_by_email,
        }


def whole_days(delta: timedelta) -> int:
    """Truncate a duration to whole days, rounding toward zero."""

    return int(delta.total_seconds() / 86400)
