"""Status source returning canned blobs."""

from collections.abc import Mapping

from redisstats.core.errors import RetrievalError
from redisstats.core.models import MonitoredServer


class StaticStatusSource:
    """StatusSourcePort serving fixed status text per server.

    A server mapped to an exception instance raises it wrapped in
    RetrievalError, which lets tests simulate an unreachable server.
    """

    def __init__(self, blobs: Mapping[MonitoredServer, str | Exception]) -> None:
        self._blobs = dict(blobs)

    def set(self, server: MonitoredServer, blob: str | Exception) -> None:
        """Replace the blob served for ``server``."""
        self._blobs[server] = blob

    async def fetch(self, server: MonitoredServer) -> str:
        """Return the canned blob for ``server``."""
        try:
            blob = self._blobs[server]
        except KeyError:
            raise RetrievalError(f"no status for {server.label}") from None
        if isinstance(blob, Exception):
            raise RetrievalError(f"{server.label}: {blob}") from blob
        return blob

    async def close(self) -> None:
        """Nothing to release."""
