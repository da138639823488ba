"""Status source adapters implementing StatusSourcePort."""

from redisstats.adapters.retrieval.redis_info import RedisInfoSource
from redisstats.adapters.retrieval.static import StaticStatusSource

__all__ = ["RedisInfoSource", "StaticStatusSource"]
