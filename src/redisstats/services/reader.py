"""Read access to persisted series for downstream consumers."""

import logging
from datetime import datetime

from redisstats.core.buckets import (
    decode_bucket_entry,
    decode_raw,
    to_score,
    truncate,
)
from redisstats.core.keys import DEFAULT_PREFIX, series_key
from redisstats.core.models import Bucket, MonitoredServer, RawSample, Resolution
from redisstats.core.ports import SampleStorePort
from redisstats.services.routing import StoreSelector, as_selector

logger = logging.getLogger(__name__)

_MIN_SCORE = float("-inf")
_MAX_SCORE = float("inf")


def _score_range(start: datetime | None, end: datetime | None) -> tuple[float, float]:
    low = _MIN_SCORE if start is None else to_score(start)
    high = _MAX_SCORE if end is None else to_score(end)
    return low, high


class SeriesReader:
    """Decodes raw samples and buckets from a sample store.

    Undecodable payloads are logged and left out of the result.
    """

    def __init__(
        self,
        store: SampleStorePort | StoreSelector,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._store_for = as_selector(store)
        self._prefix = prefix

    def _key(self, server: MonitoredServer, metric: str, resolution: Resolution) -> str:
        return series_key(self._prefix, server.host, server.port, metric, resolution)

    async def raw(
        self,
        server: MonitoredServer,
        metric: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[RawSample]:
        """Return raw samples between ``start`` and ``end`` inclusive, oldest first."""
        key = self._key(server, metric, Resolution.RAW)
        low, high = _score_range(start, end)
        payloads = await self._store_for(server).range_by_score(key, low, high)
        samples = []
        for payload in payloads:
            try:
                samples.append(decode_raw(payload))
            except ValueError as e:
                logger.warning("Ignoring entry in %s: %s", key, e)
        return samples

    async def buckets(
        self,
        server: MonitoredServer,
        metric: str,
        resolution: Resolution,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[tuple[datetime, Bucket]]:
        """Return ``(window start, bucket)`` pairs, oldest first.

        Only windows starting between ``start`` and ``end`` are included.
        Buckets written without a window start are only returned when
        ``start == end``, the window being known from the query itself.
        """
        if resolution is Resolution.RAW:
            raise ValueError("raw series hold samples, not buckets")
        key = self._key(server, metric, resolution)
        low, high = _score_range(start, end)
        payloads = await self._store_for(server).range_by_score(key, low, high)
        known = start if start is not None and start == end else None
        buckets = []
        for payload in payloads:
            try:
                window, bucket = decode_bucket_entry(payload)
            except ValueError as e:
                logger.warning("Ignoring entry in %s: %s", key, e)
                continue
            window = window or known
            if window is None:
                logger.warning(
                    "Ignoring bucket without window in %s: %s", key, payload
                )
                continue
            buckets.append((window, bucket))
        return buckets

    async def bucket_at(
        self,
        server: MonitoredServer,
        metric: str,
        resolution: Resolution,
        when: datetime,
    ) -> Bucket | None:
        """Return the bucket whose window contains ``when``, if any."""
        window = truncate(when, resolution)
        found = await self.buckets(server, metric, resolution, window, window)
        return found[0][1] if found else None
