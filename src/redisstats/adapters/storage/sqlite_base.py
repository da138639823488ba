"""Connection management for the SQLite sample store."""

import asyncio
import sqlite3
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

import aiosqlite

from redisstats.core.errors import StoreError

DEFAULT_BUSY_TIMEOUT = 30.0


@contextmanager
def translate_errors(operation: str, key: str) -> Iterator[None]:
    """Re-raise sqlite failures as StoreError."""
    try:
        yield
    except sqlite3.Error as e:
        raise StoreError(f"{operation} on {key!r} failed: {e}") from e


class AsyncConnectionManager:
    """Manages async (aiosqlite) database connections.

    Connections run in autocommit mode so that transactions are opened
    explicitly with ``BEGIN IMMEDIATE``. For :memory: databases, a single
    persistent connection is kept (in-memory databases are
    connection-scoped) and every use of it is serialised with a lock.
    """

    def __init__(
        self, db_path: str, schema: str, timeout: float = DEFAULT_BUSY_TIMEOUT
    ) -> None:
        self._db_path = db_path
        self._schema = schema
        self._timeout = timeout
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._memory_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    @property
    def is_memory(self) -> bool:
        """Return True for a connection-scoped :memory: database."""
        return self._db_path == ":memory:"

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(
            self._db_path, timeout=self._timeout, isolation_level=None
        )

    async def _ensure_initialized(self) -> None:
        """Initialize database schema once."""
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self.is_memory:
                self._persistent_conn = await self._connect()
                await self._persistent_conn.executescript(self._schema)
                self._memory_lock = asyncio.Lock()
            else:
                async with self._connect() as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager for async database connections.

        Automatically closes connections for file-based databases.
        For :memory: databases, holds the lock on the persistent connection.
        """
        await self._ensure_initialized()
        if self.is_memory:
            if self._persistent_conn is None or self._memory_lock is None:
                raise RuntimeError("Memory database connection not initialized")
            async with self._memory_lock:
                yield self._persistent_conn
            return
        db = await self._connect()
        try:
            yield db
        finally:
            await db.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run the block inside ``BEGIN IMMEDIATE`` ... ``COMMIT``.

        Any exception, including cancellation, rolls the transaction back.
        """
        async with self.connection() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield db
            except BaseException:
                await db.execute("ROLLBACK")
                raise
            await db.execute("COMMIT")

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False
