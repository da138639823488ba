"""Periodic sampling and retention tasks."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from redisstats.core.config import StatsConfig
from redisstats.core.errors import RetrievalError
from redisstats.core.metrics import select_metrics
from redisstats.core.models import MonitoredServer
from redisstats.core.ports import SampleStorePort, StatusSourcePort
from redisstats.core.status import parse_and_expand
from redisstats.services.recorder import RollupRecorder
from redisstats.services.reports import ServerTickReport, TrimReport
from redisstats.services.retention import RetentionTrimmer
from redisstats.services.routing import StoreSelector

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(UTC)


class PeriodicTask:
    """Runs a coroutine function every ``interval`` seconds on its own task.

    The first run happens one interval after :meth:`start`. An exception
    from one run is logged and the next run still happens.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], Awaitable[Any]],
    ) -> None:
        self.name = name
        self.interval = interval
        self._func = func
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the task is scheduled."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._func()
            except Exception:
                logger.exception("%s tick failed", self.name)

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


class StatsMonitor:
    """Samples every monitored server and keeps its series bounded.

    Two independent periodic tasks share nothing but the store: sampling
    every ``config.interval`` seconds and retention every
    ``config.retention_interval`` seconds. Each sampling tick fans out one
    coroutine per server; a slow or failing server only affects its own
    report.

    Example:
        ```python
        async with StatsMonitor(config, source, store):
            await asyncio.Event().wait()
        ```
    """

    def __init__(
        self,
        config: StatsConfig,
        source: StatusSourcePort,
        store: SampleStorePort | StoreSelector,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config
        self._source = source
        self._clock = clock
        self._tracked = frozenset(config.metrics)
        self.recorder = RollupRecorder(store, prefix=config.prefix)
        self.trimmer = RetentionTrimmer(
            store,
            config.servers,
            config.metrics,
            limits=config.limits,
            prefix=config.prefix,
        )
        self._sampling = PeriodicTask("sampling", config.interval, self.sample_once)
        self._retention = PeriodicTask(
            "retention", config.retention_interval, self.trim_once
        )

    async def sample_server(self, server: MonitoredServer) -> ServerTickReport:
        """Fetch, parse and record one server's status."""
        report = ServerTickReport(server=server)
        try:
            blob = await self._source.fetch(server)
        except RetrievalError as e:
            # @tra: Monitor.RetrievalFailureIsolated
            logger.warning("Skipping %s this tick: %s", server.label, e)
            report.error = e
            return report
        try:
            records = select_metrics(
                parse_and_expand(blob), server, self._tracked, self._clock()
            )
            report.metrics = len(records)
            report.record = await self.recorder.record(records)
        except Exception as e:
            logger.exception("Sampling %s failed", server.label)
            report.error = e
        return report

    async def sample_once(self) -> list[ServerTickReport]:
        """Run one sampling tick across all servers concurrently."""
        reports = await asyncio.gather(
            *(self.sample_server(server) for server in self.config.servers)
        )
        failed = sum(1 for r in reports if not r.ok)
        logger.debug("Sampled %d servers (%d with errors)", len(reports), failed)
        return list(reports)

    async def trim_once(self) -> TrimReport:
        """Run one retention pass."""
        report = await self.trimmer.trim()
        if report.total_removed:
            logger.info("Retention removed %d entries", report.total_removed)
        return report

    def start(self) -> None:
        """Start both periodic tasks."""
        logger.info(
            "Monitoring %d servers every %ss (retention every %ss)",
            len(self.config.servers),
            self.config.interval,
            self.config.retention_interval,
        )
        self._sampling.start()
        self._retention.start()

    async def stop(self) -> None:
        """Stop both periodic tasks."""
        await self._sampling.stop()
        await self._retention.stop()

    @property
    def running(self) -> bool:
        """True while either task is scheduled."""
        return self._sampling.running or self._retention.running

    async def __aenter__(self) -> "StatsMonitor":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()
