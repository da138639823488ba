"""Result objects collected by the services instead of raising."""

from dataclasses import dataclass, field

from redisstats.core.models import MonitoredServer, Resolution


@dataclass(frozen=True)
class UnitFailure:
    """One abandoned (server, metric, resolution) unit of work."""

    server: MonitoredServer
    metric: str
    resolution: Resolution
    error: Exception


@dataclass
class RecordReport:
    """Outcome of recording a batch of metric records.

    Attributes:
        written: Successful writes across every resolution.
        skipped: Averaged writes skipped because the value was not numeric.
        failures: Units abandoned because of a store error.
    """

    written: int = 0
    skipped: list[UnitFailure] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)

    def merge(self, other: "RecordReport") -> None:
        """Fold another report into this one."""
        self.written += other.written
        self.skipped.extend(other.skipped)
        self.failures.extend(other.failures)


@dataclass
class TrimReport:
    """Outcome of one retention pass.

    Attributes:
        removed: Entries removed, by series key (only keys that shrank).
        failures: Units abandoned because of a store error.
    """

    removed: dict[str, int] = field(default_factory=dict)
    failures: list[UnitFailure] = field(default_factory=list)

    @property
    def total_removed(self) -> int:
        """Entries removed across all series."""
        return sum(self.removed.values())


@dataclass
class ServerTickReport:
    """Outcome of one sampling tick for one server."""

    server: MonitoredServer
    metrics: int = 0
    record: RecordReport = field(default_factory=RecordReport)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """True when the status was fetched and every write succeeded."""
        return self.error is None and not self.record.failures
