"""SQLAlchemy persistence for exclusions and job history."""

from __future__ import annotations

from .stores import SqlAlchemyExclusionStore, SqlAlchemyJobLedger
from .tables import (
    UTCDateTime,
    create_all_tables,
    create_database_engine,
    exclusion_table,
    job_table,
    metadata,
)

__all__ = [
    "SqlAlchemyExclusionStore",
    "SqlAlchemyJobLedger",
    "UTCDateTime",
    "create_all_tables",
    "create_database_engine",
    "exclusion_table",
    "job_table",
    "metadata",
]
