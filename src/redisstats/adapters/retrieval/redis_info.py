"""Status source reading ``INFO`` from live Redis servers."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from redisstats.core.errors import RetrievalError
from redisstats.core.models import MonitoredServer

logger = logging.getLogger(__name__)


def _raw_reply(response: Any, **options: Any) -> Any:
    """Response callback that leaves the INFO text unparsed."""
    return response


class RedisInfoSource:
    """StatusSourcePort backed by one ``redis.asyncio.Redis`` client per server.

    redis-py parses INFO replies into a dict by default; this source swaps in
    a pass-through callback so the raw multi-line text reaches the parser.

    Args:
        servers: Servers to open clients for.
        redis_options: Extra keyword arguments for every client
            (password, ssl, socket timeouts...).
        timeout: Upper bound in seconds for one fetch.
    """

    def __init__(
        self,
        servers: Iterable[MonitoredServer],
        redis_options: dict[str, Any] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._timeout = timeout
        self._clients: dict[MonitoredServer, aioredis.Redis] = {}
        for server in servers:
            options = {**(redis_options or {}), "host": server.host, "port": server.port}
            options["decode_responses"] = True
            client = aioredis.Redis(**options)
            client.set_response_callback("INFO", _raw_reply)
            self._clients[server] = client

    async def fetch(self, server: MonitoredServer) -> str:
        """Return the raw ``INFO`` text of ``server``."""
        client = self._clients.get(server)
        if client is None:
            raise RetrievalError(f"{server.label} is not monitored")
        try:
            reply = await asyncio.wait_for(
                client.execute_command("INFO"), timeout=self._timeout
            )
        except TimeoutError as e:
            raise RetrievalError(
                f"{server.label}: INFO timed out after {self._timeout}s"
            ) from e
        except (RedisError, OSError) as e:
            raise RetrievalError(f"{server.label}: {e}") from e
        if isinstance(reply, bytes):
            reply = reply.decode("utf-8", errors="replace")
        if not isinstance(reply, str):
            raise RetrievalError(f"{server.label}: unexpected INFO reply {reply!r}")
        logger.debug("Fetched %d bytes of status from %s", len(reply), server.label)
        return reply

    async def close(self) -> None:
        """Close every client."""
        for client in self._clients.values():
            await client.aclose()
