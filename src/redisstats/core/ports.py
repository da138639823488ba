"""Port interfaces for the status source and the sample store.

These protocols define the contracts that adapters must implement.
The core services depend only on these interfaces, not concrete implementations.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from redisstats.core.models import MonitoredServer

# Receives the payloads currently stored at one score, returns the replacement.
UpdateFn = Callable[[list[str]], str]


@runtime_checkable
class SampleStorePort(Protocol):
    """Port for score-ordered sample storage.

    Each key holds a sorted set of text payloads ordered by a numeric score.
    Examples: InMemorySampleStore, SQLiteSampleStore, RedisSampleStore.
    """

    async def append(self, key: str, score: float, payload: str) -> None:
        """Add ``payload`` to the set at ``key`` with the given score."""
        ...

    async def cardinality(self, key: str) -> int:
        """Return the number of entries stored under ``key``."""
        ...

    async def range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        """Return payloads with ``min_score <= score <= max_score``, ascending."""
        ...

    async def remove_by_score_range(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Remove entries with ``min_score <= score <= max_score``.

        Returns:
            Number of entries removed.
        """
        ...

    async def remove_by_rank_range(self, key: str, low: int, high: int) -> int:
        """Remove entries ranked ``low`` through ``high`` inclusive.

        Rank 0 is the lowest score. Negative ranks count from the end.

        Returns:
            Number of entries removed.
        """
        ...

    async def read_modify_write(self, key: str, score: float, fn: UpdateFn) -> str:
        """Atomically replace every payload stored at exactly ``score``.

        ``fn`` receives the current payloads (possibly empty) and returns the
        new payload. Either the replacement fully commits or the prior
        entries are left untouched.

        Returns:
            The payload that was written.
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the store."""
        ...


@runtime_checkable
class StatusSourcePort(Protocol):
    """Port for fetching the raw status blob of a monitored server."""

    async def fetch(self, server: MonitoredServer) -> str:
        """Return the server's multi-line status text.

        Raises:
            RetrievalError: The status could not be fetched.
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the source."""
        ...
