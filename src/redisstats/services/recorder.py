"""Raw sample writes and hourly/daily running-mean rollups."""

import logging
from collections.abc import Iterable

from redisstats.core.buckets import encode_raw, fold_bucket, to_score, truncate
from redisstats.core.errors import NonNumericValueError, StoreError
from redisstats.core.keys import DEFAULT_PREFIX, series_key
from redisstats.core.models import MetricRecord, NumericValue, Resolution
from redisstats.core.ports import SampleStorePort
from redisstats.services.reports import RecordReport, UnitFailure
from redisstats.services.routing import StoreSelector, as_selector

logger = logging.getLogger(__name__)


class RollupRecorder:
    """Writes each metric record to its raw, hourly and daily series.

    The raw write always comes first. Bucket state is read from the store on
    every update through ``read_modify_write``, so nothing is cached between
    ticks and concurrent updates of one bucket cannot lose a sample.

    Args:
        store: Shared store, or a callable choosing the store per server.
        prefix: Series key prefix.
    """

    def __init__(
        self,
        store: SampleStorePort | StoreSelector,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._store_for = as_selector(store)
        self._prefix = prefix

    async def record(self, records: Iterable[MetricRecord]) -> RecordReport:
        """Record every metric; failures are collected, never raised."""
        report = RecordReport()
        for record in records:
            report.merge(await self.record_one(record))
        return report

    async def record_one(self, record: MetricRecord) -> RecordReport:
        """Record one metric at every resolution."""
        report = RecordReport()
        store = self._store_for(record.server)
        for resolution in Resolution:
            try:
                await self._write(store, record, resolution)
            except NonNumericValueError as e:
                logger.debug("Not averaging %s: %s", record.metric, e)
                report.skipped.append(
                    UnitFailure(record.server, record.metric, resolution, e)
                )
            except (StoreError, ValueError) as e:
                # @tra: Recorder.IsolatedFailure
                logger.warning(
                    "Dropping %s %s sample for %s: %s",
                    resolution.value,
                    record.metric,
                    record.server.label,
                    e,
                )
                report.failures.append(
                    UnitFailure(record.server, record.metric, resolution, e)
                )
            else:
                report.written += 1
        return report

    async def _write(
        self, store: SampleStorePort, record: MetricRecord, resolution: Resolution
    ) -> None:
        key = series_key(
            self._prefix,
            record.server.host,
            record.server.port,
            record.metric,
            resolution,
        )
        if resolution is Resolution.RAW:
            payload = encode_raw(record.timestamp, record.value.raw)
            await store.append(key, to_score(record.timestamp), payload)
            logger.debug("Added %s to %s", payload, key)
            return

        if not isinstance(record.value, NumericValue):
            raise NonNumericValueError(record.metric, record.value.raw)
        number = record.value.number
        window = truncate(record.timestamp, resolution)
        score = to_score(window)
        # @tra: Recorder.AtomicBucketUpdate
        payload = await store.read_modify_write(
            key, score, lambda current: fold_bucket(current, number, window)
        )
        logger.debug("Updated %s in %s at %d", payload, key, score)
