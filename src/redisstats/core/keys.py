"""Series key construction.

Layout::

    <prefix><host>:<port>:<metric>              raw samples
    <prefix><host>:<port>:hourly:<metric>       hourly buckets
    <prefix><host>:<port>:daily:<metric>        daily buckets
"""

from redisstats.core.models import Resolution

DEFAULT_PREFIX = "status:"

RESERVED_GROUPS = frozenset(
    r.key_segment for r in Resolution if r.key_segment is not None
)


def check_metric_name(metric: str) -> None:
    """Reject names that would collide with another series' key.

    Raises:
        ValueError: The name is empty or starts with a resolution segment.
    """
    if not metric:
        raise ValueError("metric name must not be empty")
    group, sep, _ = metric.partition(":")
    if sep and group in RESERVED_GROUPS:
        raise ValueError(f"metric name {metric!r} uses reserved group {group!r}")


def series_key(
    prefix: str,
    host: str,
    port: int,
    metric: str,
    resolution: Resolution = Resolution.RAW,
) -> str:
    """Build the storage key of one series.

    IPv6 hosts are bracketed so the host segment stays unambiguous.

    Args:
        prefix: Key prefix, normally ending in ":" (default "status:").
        host: Monitored server host.
        port: Monitored server port.
        metric: Tracked metric name, possibly compound.
        resolution: Series resolution.

    Returns:
        e.g. "status:127.0.0.1:6379:hourly:used_memory"
    """
    # @tra: Keys.Injective
    check_metric_name(metric)
    host_part = f"[{host}]" if ":" in host else host
    parts = [f"{prefix}{host_part}", str(int(port))]
    if resolution.key_segment is not None:
        parts.append(resolution.key_segment)
    parts.append(metric)
    return ":".join(parts)
