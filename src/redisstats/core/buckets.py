"""Timestamps, scores and payload encoding for raw samples and buckets."""

import json
from datetime import UTC, datetime, timedelta

from redisstats.core.models import Bucket, RawSample, Resolution

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def to_score(ts: datetime) -> int:
    """Return exact epoch milliseconds for an aware datetime."""
    return (ts - EPOCH) // _ONE_MS


def from_score(score: float) -> datetime:
    """Inverse of :func:`to_score`."""
    return EPOCH + timedelta(milliseconds=score)


def truncate(ts: datetime, resolution: Resolution) -> datetime:
    """Round a timestamp down to the start of its hour or day (UTC).

    Raw timestamps are returned unchanged.
    """
    ts = ts.astimezone(UTC)
    if resolution is Resolution.HOURLY:
        return ts.replace(minute=0, second=0, microsecond=0)
    if resolution is Resolution.DAILY:
        return ts.replace(hour=0, minute=0, second=0, microsecond=0)
    return ts


def iso_timestamp(ts: datetime) -> str:
    """Format as ``2016-09-10T10:00:00.000Z`` (millisecond precision)."""
    ts = ts.astimezone(UTC)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def parse_iso_timestamp(text: str) -> datetime:
    """Inverse of :func:`iso_timestamp`."""
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def encode_raw(ts: datetime, value: str) -> str:
    """Serialize a raw sample as ``{"<iso>": "<value>"}``."""
    return json.dumps({iso_timestamp(ts): value}, separators=(",", ":"))


def decode_raw(payload: str) -> RawSample:
    """Decode a raw-series payload.

    Raises:
        ValueError: The payload is not a single-entry JSON object.
    """
    data = json.loads(payload)
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"not a raw sample payload: {payload!r}")
    ((stamp, value),) = data.items()
    return RawSample(timestamp=parse_iso_timestamp(stamp), value=str(value))


def encode_bucket(bucket: Bucket, window: datetime) -> str:
    """Serialize a bucket as ``{"t": "<window iso>", "mean": <float>, "n": <int>}``.

    The window start keeps payloads unique within a series: two windows that
    reach the same mean and count are still two distinct set members.
    """
    return json.dumps(
        {"t": iso_timestamp(window), "mean": bucket.mean, "n": bucket.n},
        separators=(",", ":"),
    )


def decode_bucket_entry(payload: str) -> tuple[datetime | None, Bucket]:
    """Decode a bucket payload into its window start and bucket.

    Payloads written without ``"t"``, including the legacy
    ``{"<n>": <mean>}`` shape, decode with a window of ``None``.

    Raises:
        ValueError: The payload is not a bucket.
    """
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError(f"not a bucket payload: {payload!r}")
    if "mean" in data and "n" in data:
        window = parse_iso_timestamp(str(data["t"])) if "t" in data else None
        return window, Bucket(mean=float(data["mean"]), n=int(data["n"]))
    if len(data) == 1:
        ((count, mean),) = data.items()
        return None, Bucket(mean=float(mean), n=int(float(count)))
    raise ValueError(f"not a bucket payload: {payload!r}")


def decode_bucket(payload: str) -> Bucket:
    """Decode a bucket payload, ignoring its window."""
    return decode_bucket_entry(payload)[1]


def fold_bucket(current: list[str], value: float, window: datetime) -> str:
    """Fold one numeric sample into the bucket stored at a score.

    Args:
        current: Payloads currently stored at the bucket's score. The first
            one wins if an earlier fault left more than one.
        value: New numeric sample.
        window: Start of the bucket's hour or day.

    Returns:
        Encoded replacement bucket.
    """
    # @tra: Buckets.RunningMean
    if not current:
        return encode_bucket(Bucket(mean=value, n=1), window)
    prior = decode_bucket(current[0])
    n = prior.n + 1
    mean = (prior.n * prior.mean + value) / n
    return encode_bucket(Bucket(mean=mean, n=n), window)
