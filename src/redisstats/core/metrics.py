"""Selection of tracked metrics from parsed status pairs."""

import math
from collections.abc import Collection, Iterable
from datetime import datetime

from redisstats.core.models import (
    MetricRecord,
    MetricValue,
    MonitoredServer,
    NumericValue,
    StatusPair,
    TextValue,
)


def coerce_value(raw: str) -> MetricValue:
    """Tag a raw status value as numeric or text.

    Args:
        raw: Value text from the status blob (e.g. "100", "0.75", "1.2M").

    Returns:
        NumericValue when the whole text is a finite number, TextValue otherwise.
    """
    try:
        number = float(raw)
    except ValueError:
        return TextValue(raw=raw)
    if not math.isfinite(number):
        return TextValue(raw=raw)
    return NumericValue(raw=raw, number=number)


def select_metrics(
    pairs: Iterable[StatusPair],
    server: MonitoredServer,
    tracked: Collection[str],
    now: datetime,
) -> list[MetricRecord]:
    """Keep the pairs whose name is tracked and tag their values.

    Args:
        pairs: Expanded status pairs.
        server: Server the pairs were read from.
        tracked: Allow-list of metric names, matched exactly.
        now: Sampling timestamp shared by every record.

    Returns:
        One record per tracked pair, in source order.
    """
    allowed = tracked if isinstance(tracked, (set, frozenset)) else set(tracked)
    return [
        MetricRecord(
            server=server,
            metric=pair.name,
            value=coerce_value(pair.value),
            timestamp=now,
        )
        for pair in pairs
        if pair.value is not None and pair.name in allowed
    ]
