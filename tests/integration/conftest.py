"""Store fixtures shared by the store contract and concurrency tests."""

import os
import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from redisstats.adapters.storage import (
    InMemorySampleStore,
    RedisSampleStore,
    SQLiteSampleStore,
)
from redisstats.core.ports import SampleStorePort

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/15")


async def _redis_store() -> RedisSampleStore:
    """Connect to REDIS_URL or skip the test."""
    from redis import asyncio as aioredis
    from redis.exceptions import RedisError

    client = aioredis.from_url(REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError):
        await client.aclose()
        pytest.skip(f"no Redis server at {REDIS_URL}")
    return RedisSampleStore(client)


@pytest.fixture(params=["memory", "sqlite-file", "sqlite-memory", "redis"])
async def store(
    request: pytest.FixtureRequest, tmp_path: Path
) -> AsyncGenerator[SampleStorePort]:
    """Every SampleStorePort implementation, one per parameter."""
    if request.param == "memory":
        instance: SampleStorePort = InMemorySampleStore()
    elif request.param == "sqlite-file":
        instance = SQLiteSampleStore(str(tmp_path / "samples.db"))
    elif request.param == "sqlite-memory":
        instance = SQLiteSampleStore(":memory:")
    else:
        request.applymarker(pytest.mark.redis)
        instance = await _redis_store()
    yield instance
    await instance.close()


@pytest.fixture
def key() -> str:
    """A key no other test uses (Redis keeps state between tests)."""
    return f"test:{uuid.uuid4().hex}:used_memory"
