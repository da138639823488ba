"""Status blob parsing.

A status blob is the text returned by the ``INFO`` command::

    # Server
    uptime_in_seconds:500
    # Keyspace
    db0:keys=37,expires=2,avg_ttl=20648
"""

import logging

from redisstats.core.errors import ParseError
from redisstats.core.models import StatusPair

logger = logging.getLogger(__name__)


def parse_status(blob: str) -> list[StatusPair]:
    """Split a status blob into one pair per non-blank line.

    Carriage returns are stripped. Lines without a colon, or with nothing
    after it, produce a pair whose value is ``None``.

    Args:
        blob: Raw multi-line status text.

    Returns:
        Pairs in source order.
    """
    pairs: list[StatusPair] = []
    for line in blob.split("\n"):
        line = line.replace("\r", "")
        if not line:
            continue
        name, _, value = line.partition(":")
        pairs.append(StatusPair(name=name, value=value or None))
    return pairs


def _split_fields(name: str, value: str) -> list[StatusPair]:
    """Expand ``field=value,field=value`` into compound pairs."""
    expanded: list[StatusPair] = []
    for chunk in value.split(","):
        field, sep, field_value = chunk.partition("=")
        if not sep or not field:
            raise ParseError(f"{name}: malformed sub-field {chunk!r}")
        expanded.append(StatusPair(name=f"{name}:{field}", value=field_value))
    return expanded


def expand_pairs(pairs: list[StatusPair]) -> list[StatusPair]:
    """Expand comma-separated sub-lists into ``<name>:<field>`` pairs.

    Header pairs (``value is None``) are dropped. A pair whose sub-list
    cannot be parsed is skipped and parsing continues with the next pair.
    """
    expanded: list[StatusPair] = []
    for pair in pairs:
        if pair.value is None:
            continue
        if "=" not in pair.value:
            expanded.append(pair)
            continue
        try:
            expanded.extend(_split_fields(pair.name, pair.value))
        except ParseError as e:
            logger.debug("Skipping unparseable status line: %s", e)
    return expanded


def parse_and_expand(blob: str) -> list[StatusPair]:
    """Parse a status blob and expand its sub-lists in one step."""
    return expand_pairs(parse_status(blob))
