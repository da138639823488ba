"""redisstats - multi-resolution time series of Redis INFO metrics.

Samples tracked metrics from one or more servers, keeps raw samples plus
exact hourly and daily running means in sorted sets, and trims every
series to a bounded length.
"""

from redisstats.adapters.retrieval import RedisInfoSource, StaticStatusSource
from redisstats.adapters.storage import (
    InMemorySampleStore,
    RedisSampleStore,
    SQLiteSampleStore,
)
from redisstats.core.config import RetentionLimits, StatsConfig, load_config
from redisstats.core.errors import (
    ConfigurationError,
    NonNumericValueError,
    ParseError,
    RedisStatsError,
    RetrievalError,
    StoreError,
)
from redisstats.core.keys import series_key
from redisstats.core.metrics import coerce_value, select_metrics
from redisstats.core.models import (
    Bucket,
    MetricRecord,
    MonitoredServer,
    NumericValue,
    RawSample,
    Resolution,
    StatusPair,
    TextValue,
)
from redisstats.core.ports import SampleStorePort, StatusSourcePort
from redisstats.core.status import expand_pairs, parse_and_expand, parse_status
from redisstats.services import (
    PeriodicTask,
    RetentionTrimmer,
    RollupRecorder,
    SeriesReader,
    StatsMonitor,
)

__all__ = [
    "Bucket",
    "ConfigurationError",
    "InMemorySampleStore",
    "MetricRecord",
    "MonitoredServer",
    "NonNumericValueError",
    "NumericValue",
    "ParseError",
    "PeriodicTask",
    "RawSample",
    "RedisInfoSource",
    "RedisSampleStore",
    "RedisStatsError",
    "Resolution",
    "RetentionLimits",
    "RetentionTrimmer",
    "RetrievalError",
    "RollupRecorder",
    "SQLiteSampleStore",
    "SampleStorePort",
    "SeriesReader",
    "StatsConfig",
    "StatsMonitor",
    "StatusPair",
    "StatusSourcePort",
    "StoreError",
    "TextValue",
    "coerce_value",
    "expand_pairs",
    "load_config",
    "parse_and_expand",
    "parse_status",
    "select_metrics",
    "series_key",
]
