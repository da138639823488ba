"""Rank arithmetic shared by the non-Redis store adapters."""


def normalize_rank_range(low: int, high: int, count: int) -> tuple[int, int] | None:
    """Resolve Redis-style inclusive ranks against a set of ``count`` entries.

    Negative ranks count from the end (-1 is the highest score).

    Returns:
        ``(start, stop)`` as a half-open slice, or ``None`` if the range is empty.
    """
    if low < 0:
        low = max(count + low, 0)
    if high < 0:
        high = count + high
    high = min(high, count - 1)
    if low > high or low >= count:
        return None
    return low, high + 1
