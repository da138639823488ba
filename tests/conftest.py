"""Shared test fixtures for all test modules."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from redisstats.adapters.storage import InMemorySampleStore, SQLiteSampleStore
from redisstats.core.models import MonitoredServer

# 2016-09-10T10:15:30.250Z
FIXED_NOW = datetime(2016, 9, 10, 10, 15, 30, 250000, tzinfo=UTC)


@pytest.fixture
def server() -> MonitoredServer:
    """The default monitored server."""
    return MonitoredServer(host="127.0.0.1", port=6379)


@pytest.fixture
def other_server() -> MonitoredServer:
    """A second monitored server."""
    return MonitoredServer(host="10.0.0.2", port=6380)


@pytest.fixture
def now() -> datetime:
    """A fixed sampling instant in the middle of an hour."""
    return FIXED_NOW


@pytest.fixture
def memory_store() -> InMemorySampleStore:
    """Fixture providing an empty in-memory sample store."""
    return InMemorySampleStore()


@pytest.fixture
def store_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite store tests."""
    return str(tmp_path / "samples.db")


@pytest.fixture
async def sqlite_store(store_db_path: str) -> AsyncGenerator[SQLiteSampleStore]:
    """Fixture providing a file-backed SQLite sample store."""
    store = SQLiteSampleStore(store_db_path)
    yield store
    await store.close()
