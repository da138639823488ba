"""Exception hierarchy for redisstats.

Only ``ConfigurationError`` is meant to reach the caller. Every other error
is raised inside a single unit of work and collected by the services into
their report objects.
"""


class RedisStatsError(Exception):
    """Base class for all redisstats errors."""


class ConfigurationError(RedisStatsError, ValueError):
    """Required configuration is missing or invalid."""


class RetrievalError(RedisStatsError):
    """The status blob could not be fetched from a monitored server."""


class ParseError(RedisStatsError):
    """A status line or sub-field is not a valid ``name:value`` pair."""


class NonNumericValueError(RedisStatsError):
    """An averaged write was attempted with a non-numeric value."""

    def __init__(self, metric: str, raw: str) -> None:
        super().__init__(f"{metric}: {raw!r} is not a finite number")
        self.metric = metric
        self.raw = raw


class StoreError(RedisStatsError):
    """A SampleStore operation failed."""
