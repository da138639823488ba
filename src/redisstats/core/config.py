"""Configuration for the sampling and retention tasks."""

import json
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from redisstats.core.errors import ConfigurationError
from redisstats.core.keys import DEFAULT_PREFIX, check_metric_name
from redisstats.core.models import MonitoredServer, Resolution

DEFAULT_INTERVAL = 60.0
DEFAULT_RETENTION_INTERVAL = 300.0
DEFAULT_RETRIEVAL_TIMEOUT = 10.0


@dataclass(frozen=True)
class RetentionLimits:
    """Maximum number of entries kept per series, by resolution.

    Attributes:
        raw: One day of samples at the default 60s interval.
        hourly: Thirty days of hourly buckets.
        daily: One year of daily buckets.
    """

    raw: int = 1440
    hourly: int = 720
    daily: int = 365

    def for_resolution(self, resolution: Resolution) -> int:
        """Return the limit that applies to ``resolution``."""
        return {
            Resolution.RAW: self.raw,
            Resolution.HOURLY: self.hourly,
            Resolution.DAILY: self.daily,
        }[resolution]


@dataclass(frozen=True)
class StatsConfig:
    """Validated configuration consumed by the monitor."""

    servers: tuple[MonitoredServer, ...]
    metrics: tuple[str, ...]
    prefix: str = DEFAULT_PREFIX
    interval: float = DEFAULT_INTERVAL
    retention_interval: float = DEFAULT_RETENTION_INTERVAL
    limits: RetentionLimits = field(default_factory=RetentionLimits)
    store: MonitoredServer | None = None
    redis_options: dict[str, Any] = field(default_factory=dict)
    retrieval_timeout: float = DEFAULT_RETRIEVAL_TIMEOUT

    def __post_init__(self) -> None:
        if not self.servers:
            raise ConfigurationError(
                'requires "servers", e.g. [{host = "127.0.0.1", port = 6379}]'
            )
        if not self.metrics:
            raise ConfigurationError(
                'requires "stats", e.g. ["used_memory", "uptime_in_seconds"]'
            )
        for metric in self.metrics:
            try:
                check_metric_name(metric)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        for name in ("interval", "retention_interval", "retrieval_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f'"{name}" must be positive')
        for resolution in Resolution:
            if self.limits.for_resolution(resolution) < 1:
                raise ConfigurationError(
                    f'"max_items.{resolution.value}" must be at least 1'
                )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StatsConfig":
        """Build a config from a parsed TOML/JSON document.

        Recognised keys: ``servers``, ``stats`` (alias ``metrics``),
        ``prefix``, ``interval``, ``retention_interval``, ``max_items``
        (an int applied to raw only, or a table with ``raw``/``hourly``/
        ``daily``), ``store``, ``redis_options``, ``retrieval_timeout``.

        Raises:
            ConfigurationError: A required key is missing or a value is invalid.
        """
        servers = tuple(_parse_server(s) for s in data.get("servers") or ())
        metrics = data.get("stats", data.get("metrics")) or ()
        if isinstance(metrics, str):
            raise ConfigurationError('"stats" must be a list of metric names')
        store = data.get("store")
        try:
            return cls(
                servers=servers,
                metrics=tuple(dict.fromkeys(str(m) for m in metrics)),
                prefix=str(data.get("prefix") or DEFAULT_PREFIX),
                interval=float(data.get("interval", DEFAULT_INTERVAL)),
                retention_interval=float(
                    data.get("retention_interval", DEFAULT_RETENTION_INTERVAL)
                ),
                limits=_parse_limits(data.get("max_items")),
                store=_parse_server(store) if store else None,
                redis_options=dict(data.get("redis_options") or {}),
                retrieval_timeout=float(
                    data.get("retrieval_timeout", DEFAULT_RETRIEVAL_TIMEOUT)
                ),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid configuration: {e}") from e


def _parse_server(entry: Any) -> MonitoredServer:
    """Accept ``{host, port}`` tables or ``"host[:port]"`` strings.

    IPv6 addresses take a port only in brackets (``[::1]:6380``); a bare
    ``::1`` is a host on the default port.
    """
    if isinstance(entry, str):
        entry = _split_host_port(entry)
    if not isinstance(entry, Mapping) or not entry.get("host"):
        raise ConfigurationError(f"invalid server entry: {entry!r}")
    try:
        port = int(entry.get("port", 6379))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid port in server entry: {entry!r}") from e
    if not 0 < port < 65536:
        raise ConfigurationError(f"port out of range in server entry: {entry!r}")
    return MonitoredServer(host=str(entry["host"]), port=port)


def _split_host_port(text: str) -> dict[str, str]:
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or (rest and not rest.startswith(":")):
            raise ConfigurationError(f"invalid server entry: {text!r}")
        return {"host": host, "port": rest[1:] or "6379"}
    if text.count(":") == 1:
        host, _, port = text.partition(":")
        return {"host": host, "port": port}
    return {"host": text, "port": "6379"}


def _parse_limits(value: Any) -> RetentionLimits:
    if value is None:
        return RetentionLimits()
    if isinstance(value, Mapping):
        defaults = RetentionLimits()
        return RetentionLimits(
            raw=int(value.get("raw", defaults.raw)),
            hourly=int(value.get("hourly", defaults.hourly)),
            daily=int(value.get("daily", defaults.daily)),
        )
    return RetentionLimits(raw=int(value))


def load_config(path: str | Path) -> StatsConfig:
    """Load a TOML or JSON config file.

    Raises:
        ConfigurationError: The file cannot be read or is invalid.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"cannot read config {path}: {e}") from e
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"cannot parse config {path}: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"config {path} must be a table/object")
    return StatsConfig.from_mapping(data)
