from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from reclaimr.adapters.sqlalchemy import create_all_tables, create_database_engine
from reclaimr.config import StaticConfigProvider
from reclaimr.domain.reconciliation import ReconciliationEngine
from tests.helpers.fakes import (
    FixedClock,
    InMemoryExclusionStore,
    InMemoryJobLedger,
    RecordingCache,
)
from tests.helpers.media import NOW, make_settings

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from reclaimr.config import Settings


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def exclusions() -> InMemoryExclusionStore:
    return InMemoryExclusionStore()


@pytest.fixture
def jobs() -> InMemoryJobLedger:
    return InMemoryJobLedger()


@pytest.fixture
def cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def make_engine(
    clock: FixedClock,
    exclusions: InMemoryExclusionStore,
    jobs: InMemoryJobLedger,
    cache: RecordingCache,
) -> Iterator[Callable[..., ReconciliationEngine]]:
    created: list[ReconciliationEngine] = []

    def factory(settings: Settings | None = None, **sources: object) -> ReconciliationEngine:
        engine = ReconciliationEngine(
            config_provider=StaticConfigProvider(settings or make_settings()),
            exclusions=exclusions,
            jobs=jobs,
            cache=cache,
            clock=clock,
            **sources,  # type: ignore[arg-type]
        )
        created.append(engine)
        return engine

    yield factory
    for engine in created:
        engine.stop()


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_database_engine(f"sqlite+pysqlite:///{tmp_path / 'reclaimr.db'}")
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()
