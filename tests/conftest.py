from __future__ import annotations

from typing import Iterator

import pytest

from datastore.connection import ConnectionProvider
from services.readings import ReadingStore
from settings import Settings


@pytest.fixture
def scenario_json() -> str:
    return (
        '[{"timestamp":"2024-01-01T00:00:00Z","centigrade":21.5},'
        '{"timestamp":"2024-01-02T00:00:00Z","centigrade":19.0}]'
    )


@pytest.fixture
def sqlite_settings(tmp_path) -> Settings:
    return Settings(database_url=f"sqlite:///{tmp_path / 'home.db'}")


@pytest.fixture
def store(sqlite_settings: Settings) -> Iterator[ReadingStore]:
    reading_store = ReadingStore(provider=ConnectionProvider(sqlite_settings))
    reading_store.ensure_schema()
    yield reading_store
    reading_store.provider.dispose()
