"""Services driving sampling, rollup and retention through the ports."""

from redisstats.services.monitor import PeriodicTask, StatsMonitor
from redisstats.services.reader import SeriesReader
from redisstats.services.recorder import RollupRecorder
from redisstats.services.reports import (
    RecordReport,
    ServerTickReport,
    TrimReport,
    UnitFailure,
)
from redisstats.services.retention import RetentionTrimmer

__all__ = [
    "PeriodicTask",
    "RecordReport",
    "RetentionTrimmer",
    "RollupRecorder",
    "SeriesReader",
    "ServerTickReport",
    "StatsMonitor",
    "TrimReport",
    "UnitFailure",
]
