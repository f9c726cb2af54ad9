"""SQLAlchemy table metadata for exclusions and the job ledger."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    create_engine,
)
from sqlalchemy.pool import StaticPool

from reclaimr.domain.model import ExternalType, JobKind, JobStatus, MediaType

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_column[E: StrEnum](enum_cls: type[E], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "pk": "pk_%(table_name)s",
    }
)

exclusion_table = Table(
    "exclusion",
    metadata,
    Column("external_id", String(64), primary_key=True),
    Column(
        "external_type",
        _enum_column(ExternalType, "external_type"),
        nullable=False,
    ),
    Column("media_type", _enum_column(MediaType, "media_type"), nullable=False),
    Column("title", String(512), nullable=False, default=""),
    Column("excluded_at", UTCDateTime(), nullable=False),
    Column("excluded_by", String(64), nullable=False, default="api"),
    Column("reason", Text, nullable=False, default=""),
)

job_table = Table(
    "job",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("kind", _enum_column(JobKind, "job_kind"), nullable=False),
    Column("status", _enum_column(JobStatus, "job_status"), nullable=False),
    Column("started_at", UTCDateTime(), nullable=False, index=True),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("duration_ms", Integer, nullable=False, default=0),
    Column("summary", JSON, nullable=False),
    Column("error", Text, nullable=False, default=""),
)


def create_database_engine(uri: str) -> Engine:
    """Create an engine that can be shared by the scheduler threads."""

    if not uri.startswith("sqlite"):
        return create_engine(uri, future=True)
    if uri.endswith(":memory:") or uri.endswith("://"):
        return create_engine(
            uri,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(uri, future=True, connect_args={"check_same_thread": False})


def create_all_tables(engine: Engine) -> None:
    log.debug(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
    metadata.create_all(engine)
