"""Core domain models for sampled server statistics."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class MonitoredServer:
    """A key-value server whose status is sampled.

    Attributes:
        host: Hostname or IP address.
        port: TCP port.
    """

    host: str
    port: int

    @property
    def label(self) -> str:
        """Human readable ``host:port``."""
        return f"{self.host}:{self.port}"


class Resolution(Enum):
    """Granularity at which a metric's history is kept."""

    RAW = "raw"
    HOURLY = "hourly"
    DAILY = "daily"

    @property
    def key_segment(self) -> str | None:
        """Segment inserted into the series key (``None`` for raw)."""
        if self is Resolution.RAW:
            return None
        return self.value


@dataclass(frozen=True)
class NumericValue:
    """A metric value that parsed as a finite number.

    Attributes:
        raw: Text exactly as it appeared in the status blob.
        number: Parsed value used for averaging.
    """

    raw: str
    number: float


@dataclass(frozen=True)
class TextValue:
    """A metric value that is not a finite number (e.g. ``1.2M``)."""

    raw: str


MetricValue = NumericValue | TextValue


@dataclass(frozen=True)
class StatusPair:
    """One ``name:value`` line of a status blob.

    ``value`` is ``None`` for section headers and empty right-hand sides.
    """

    name: str
    value: str | None


@dataclass(frozen=True)
class MetricRecord:
    """A tracked metric selected from one server's status at one instant.

    Attributes:
        server: Server the value was read from.
        metric: Tracked metric name, possibly compound (``db0:keys``).
        value: Tagged value.
        timestamp: Sampling time, timezone-aware UTC.
    """

    server: MonitoredServer
    metric: str
    value: MetricValue
    timestamp: datetime


@dataclass(frozen=True)
class Bucket:
    """Running mean of every numeric sample in one hourly or daily window."""

    mean: float
    n: int


@dataclass(frozen=True)
class RawSample:
    """A decoded raw-series entry."""

    timestamp: datetime
    value: str
