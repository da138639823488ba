"""SQLite sample store adapter."""

import asyncio

from redisstats.adapters.storage._ranks import normalize_rank_range
from redisstats.adapters.storage.sqlite_base import (
    DEFAULT_BUSY_TIMEOUT,
    AsyncConnectionManager,
    translate_errors,
)
from redisstats.core.ports import UpdateFn

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sorted_set_entries (
    key TEXT NOT NULL,
    member TEXT NOT NULL,
    score REAL NOT NULL,
    PRIMARY KEY (key, member)
);
CREATE INDEX IF NOT EXISTS idx_sorted_set_entries_score
    ON sorted_set_entries(key, score, member);
"""

_UPSERT = """
INSERT INTO sorted_set_entries (key, member, score) VALUES (?, ?, ?)
ON CONFLICT(key, member) DO UPDATE SET score = excluded.score
"""

_COUNT = """
SELECT COUNT(*) FROM sorted_set_entries WHERE key = ?
"""

_SELECT_BY_SCORE = """
SELECT member FROM sorted_set_entries
WHERE key = ? AND score >= ? AND score <= ?
ORDER BY score ASC, member ASC
"""

_DELETE_BY_SCORE = """
DELETE FROM sorted_set_entries WHERE key = ? AND score >= ? AND score <= ?
"""

_DELETE_BY_RANK = """
DELETE FROM sorted_set_entries
WHERE key = ? AND member IN (
    SELECT member FROM sorted_set_entries
    WHERE key = ?
    ORDER BY score ASC, member ASC
    LIMIT ? OFFSET ?
)
"""


# @tra: Adapter.SQLiteStore.ImplementsSampleStorePort
class SQLiteSampleStore:
    """SQLite implementation of SampleStorePort.

    Stores every sorted set in one table using aiosqlite for non-blocking
    async operations. Uses WAL mode for concurrent access. Read-modify-write
    runs inside ``BEGIN IMMEDIATE`` so that concurrent writers, in this
    process or another one sharing the file, are serialised.
    """

    def __init__(self, db_path: str, timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self._db_path = db_path
        self._manager = AsyncConnectionManager(db_path, _SCHEMA, timeout=timeout)
        self._rmw_lock: asyncio.Lock | None = None

    def _get_rmw_lock(self) -> asyncio.Lock:
        """Get or create the in-process writer lock (lazy to avoid event loop issues)."""
        if self._rmw_lock is None:
            self._rmw_lock = asyncio.Lock()
        return self._rmw_lock

    async def append(self, key: str, score: float, payload: str) -> None:
        """Add a payload to the set at ``key``."""
        with translate_errors("append", key):
            async with self._manager.connection() as db:
                await db.execute(_UPSERT, (key, payload, score))

    async def cardinality(self, key: str) -> int:
        """Return the number of entries under ``key``."""
        with translate_errors("cardinality", key):
            async with self._manager.connection() as db:
                async with db.execute(_COUNT, (key,)) as cursor:
                    row = await cursor.fetchone()
                    return row[0] if row else 0

    async def range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        """Return payloads with score in ``[min_score, max_score]``."""
        with translate_errors("range_by_score", key):
            async with self._manager.connection() as db:
                async with db.execute(
                    _SELECT_BY_SCORE, (key, min_score, max_score)
                ) as cursor:
                    return [row[0] async for row in cursor]

    async def remove_by_score_range(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Remove entries with score in ``[min_score, max_score]``."""
        with translate_errors("remove_by_score_range", key):
            async with self._manager.connection() as db:
                cursor = await db.execute(_DELETE_BY_SCORE, (key, min_score, max_score))
                return cursor.rowcount

    async def remove_by_rank_range(self, key: str, low: int, high: int) -> int:
        """Remove entries ranked ``low`` through ``high`` inclusive."""
        with translate_errors("remove_by_rank_range", key):
            async with self._manager.transaction() as db:
                async with db.execute(_COUNT, (key,)) as cursor:
                    row = await cursor.fetchone()
                bounds = normalize_rank_range(low, high, row[0] if row else 0)
                if bounds is None:
                    return 0
                start, stop = bounds
                cursor = await db.execute(
                    _DELETE_BY_RANK, (key, key, stop - start, start)
                )
                return cursor.rowcount

    async def read_modify_write(self, key: str, score: float, fn: UpdateFn) -> str:
        """Atomically replace the payloads stored at ``score``."""
        # @tra: Adapter.SQLiteStore.AtomicReadModifyWrite
        with translate_errors("read_modify_write", key):
            async with self._get_rmw_lock(), self._manager.transaction() as db:
                async with db.execute(_SELECT_BY_SCORE, (key, score, score)) as cursor:
                    current = [row[0] async for row in cursor]
                new_payload = fn(current)
                await db.execute(_DELETE_BY_SCORE, (key, score, score))
                await db.execute(_UPSERT, (key, new_payload, score))
                return new_payload

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()
