"""Redis sample store adapter."""

import logging
from typing import Any

from redis import asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from redisstats.core.errors import StoreError
from redisstats.core.models import MonitoredServer
from redisstats.core.ports import UpdateFn

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 50


# @tra: Adapter.RedisStore.ImplementsSampleStorePort
class RedisSampleStore:
    """Redis implementation of SampleStorePort using native sorted sets.

    Read-modify-write is an optimistic ``WATCH``/``MULTI``/``EXEC`` loop on
    the bucket's key: if any other client touches the key between the read
    and the ``EXEC``, the transaction is discarded and retried.

    Args:
        client: A ``redis.asyncio.Redis`` created with ``decode_responses=True``.
        max_retries: Attempts before a contended update gives up.
    """

    def __init__(
        self, client: aioredis.Redis, max_retries: int = DEFAULT_MAX_RETRIES
    ) -> None:
        self._client = client
        self._max_retries = max_retries

    @classmethod
    def for_server(
        cls, server: MonitoredServer, **redis_options: Any
    ) -> "RedisSampleStore":
        """Create a store writing into ``server``."""
        options = {**redis_options, "host": server.host, "port": server.port}
        options["decode_responses"] = True
        return cls(aioredis.Redis(**options))

    async def append(self, key: str, score: float, payload: str) -> None:
        """ZADD one payload."""
        try:
            await self._client.zadd(key, {payload: score})
        except RedisError as e:
            raise StoreError(f"append on {key!r} failed: {e}") from e

    async def cardinality(self, key: str) -> int:
        """ZCARD."""
        try:
            return int(await self._client.zcard(key))
        except RedisError as e:
            raise StoreError(f"cardinality on {key!r} failed: {e}") from e

    async def range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        """ZRANGEBYSCORE."""
        try:
            return list(await self._client.zrangebyscore(key, min_score, max_score))
        except RedisError as e:
            raise StoreError(f"range_by_score on {key!r} failed: {e}") from e

    async def remove_by_score_range(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """ZREMRANGEBYSCORE."""
        try:
            return int(
                await self._client.zremrangebyscore(key, min_score, max_score)
            )
        except RedisError as e:
            raise StoreError(f"remove_by_score_range on {key!r} failed: {e}") from e

    async def remove_by_rank_range(self, key: str, low: int, high: int) -> int:
        """ZREMRANGEBYRANK."""
        try:
            return int(await self._client.zremrangebyrank(key, low, high))
        except RedisError as e:
            raise StoreError(f"remove_by_rank_range on {key!r} failed: {e}") from e

    async def read_modify_write(self, key: str, score: float, fn: UpdateFn) -> str:
        """Replace the payloads at ``score`` with an optimistic transaction."""
        # @tra: Adapter.RedisStore.AtomicReadModifyWrite
        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._client.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    current = list(await pipe.zrangebyscore(key, score, score))
                    new_payload = fn(current)
                    pipe.multi()
                    pipe.zremrangebyscore(key, score, score)
                    pipe.zadd(key, {new_payload: score})
                    await pipe.execute()
                    return new_payload
            except WatchError:
                logger.debug("Contended update on %s (attempt %d)", key, attempt)
            except RedisError as e:
                raise StoreError(f"read_modify_write on {key!r} failed: {e}") from e
        raise StoreError(
            f"read_modify_write on {key!r} gave up after {self._max_retries} attempts"
        )

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.aclose()
