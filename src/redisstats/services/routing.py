"""Selection of the store a server's series are written to."""

from collections.abc import Callable

from redisstats.core.models import MonitoredServer
from redisstats.core.ports import SampleStorePort

StoreSelector = Callable[[MonitoredServer], SampleStorePort]


def as_selector(store: SampleStorePort | StoreSelector) -> StoreSelector:
    """Turn a single shared store into a selector; pass selectors through."""
    if isinstance(store, SampleStorePort):

        def shared(server: MonitoredServer) -> SampleStorePort:
            return store

        return shared
    return store
