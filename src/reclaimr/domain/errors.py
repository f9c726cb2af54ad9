"""Error taxonomy for the reconciliation and retention domain."""

from __future__ import annotations


class ReclaimrError(RuntimeError):
    """Base class for domain errors."""


class NotFoundError(ReclaimrError):
    """Raised when a referenced media item or job does not exist."""


class AlreadyRunningError(ReclaimrError):
    """Raised on a duplicate start or an overlapping reconciliation run."""


class InvalidDurationError(ReclaimrError, ValueError):
    """Raised when a retention string cannot be parsed."""


class SourceUnavailableError(ReclaimrError):
    """Raised when a source collaborator fails during ingest."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class PersistenceError(ReclaimrError):
    """Raised when the exclusion store or job ledger cannot be written."""
