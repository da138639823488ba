"""In-memory sample store adapter."""

import asyncio
from collections import defaultdict

from redisstats.adapters.storage._ranks import normalize_rank_range
from redisstats.core.ports import UpdateFn


class InMemorySampleStore:
    """In-memory implementation of SampleStorePort.

    Keeps one ``{member: score}`` mapping per key. Suitable for testing and
    single-process deployments where persistence is not required.
    Read-modify-write holds a per-key lock and never suspends between the
    read and the write.
    """

    def __init__(self) -> None:
        self._sets: dict[str, dict[str, float]] = defaultdict(dict)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _ordered(self, key: str) -> list[tuple[str, float]]:
        """Entries ordered by score, then member."""
        return sorted(self._sets[key].items(), key=lambda item: (item[1], item[0]))

    async def append(self, key: str, score: float, payload: str) -> None:
        """Add a payload to the set at ``key``."""
        self._sets[key][payload] = score

    async def cardinality(self, key: str) -> int:
        """Return the number of entries under ``key``."""
        return len(self._sets.get(key, ()))

    async def range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        """Return payloads with score in ``[min_score, max_score]``."""
        return [m for m, s in self._ordered(key) if min_score <= s <= max_score]

    async def remove_by_score_range(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Remove entries with score in ``[min_score, max_score]``."""
        members = self._sets.get(key, {})
        doomed = [m for m, s in members.items() if min_score <= s <= max_score]
        for member in doomed:
            del members[member]
        return len(doomed)

    async def remove_by_rank_range(self, key: str, low: int, high: int) -> int:
        """Remove entries ranked ``low`` through ``high`` inclusive."""
        ordered = self._ordered(key)
        bounds = normalize_rank_range(low, high, len(ordered))
        if bounds is None:
            return 0
        start, stop = bounds
        for member, _ in ordered[start:stop]:
            del self._sets[key][member]
        return stop - start

    async def read_modify_write(self, key: str, score: float, fn: UpdateFn) -> str:
        """Atomically replace the payloads stored at ``score``."""
        async with self._locks[key]:
            members = self._sets[key]
            current = [m for m, s in sorted(members.items()) if s == score]
            new_payload = fn(current)
            for member in current:
                del members[member]
            members[new_payload] = score
            return new_payload

    async def close(self) -> None:
        """Nothing to release."""
