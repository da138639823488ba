"""Sample store adapters implementing SampleStorePort."""

from redisstats.adapters.storage.in_memory import InMemorySampleStore
from redisstats.adapters.storage.redis_store import RedisSampleStore
from redisstats.adapters.storage.sqlite import SQLiteSampleStore

__all__ = [
    "InMemorySampleStore",
    "RedisSampleStore",
    "SQLiteSampleStore",
]
