"""Bounding every series to its configured maximum length."""

import asyncio
import logging
from collections.abc import Iterable

from redisstats.core.config import RetentionLimits
from redisstats.core.errors import StoreError
from redisstats.core.keys import DEFAULT_PREFIX, series_key
from redisstats.core.models import MonitoredServer, Resolution
from redisstats.core.ports import SampleStorePort
from redisstats.services.reports import TrimReport, UnitFailure
from redisstats.services.routing import StoreSelector, as_selector

logger = logging.getLogger(__name__)


async def trim_series(store: SampleStorePort, key: str, limit: int) -> int:
    """Drop the oldest entries of one series beyond ``limit``.

    Returns:
        Number of entries removed (0 when the series already fits).
    """
    # @tra: Retention.EvictOldestFirst
    count = await store.cardinality(key)
    logger.debug("Number of items in set %s is %d", key, count)
    if count <= limit:
        return 0
    removed = await store.remove_by_rank_range(key, 0, count - limit - 1)
    logger.info("Removed %d of %d items from %s", removed, count - limit, key)
    return removed


class RetentionTrimmer:
    """Trims every (server, metric, resolution) series independently.

    Servers are trimmed concurrently; within a server each series is its own
    unit of work, so a failing key never stops the rest of the pass.
    Running a pass twice with no writes in between removes nothing the
    second time.
    """

    def __init__(
        self,
        store: SampleStorePort | StoreSelector,
        servers: Iterable[MonitoredServer],
        metrics: Iterable[str],
        limits: RetentionLimits | None = None,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._store_for = as_selector(store)
        self._servers = tuple(servers)
        self._metrics = tuple(metrics)
        self._limits = limits or RetentionLimits()
        self._prefix = prefix

    async def trim(self) -> TrimReport:
        """Run one retention pass over every series."""
        report = TrimReport()
        results = await asyncio.gather(
            *(self.trim_server(server) for server in self._servers)
        )
        for server_report in results:
            report.removed.update(server_report.removed)
            report.failures.extend(server_report.failures)
        return report

    async def trim_server(self, server: MonitoredServer) -> TrimReport:
        """Trim every tracked series of one server."""
        report = TrimReport()
        store = self._store_for(server)
        for metric in self._metrics:
            for resolution in Resolution:
                key = series_key(
                    self._prefix, server.host, server.port, metric, resolution
                )
                try:
                    removed = await trim_series(
                        store, key, self._limits.for_resolution(resolution)
                    )
                except StoreError as e:
                    logger.warning("Skipping trim of %s: %s", key, e)
                    report.failures.append(UnitFailure(server, metric, resolution, e))
                    continue
                if removed:
                    report.removed[key] = removed
        return report
