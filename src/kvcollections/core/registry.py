"""Collection registry: the set of collections served by one store."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ..components.memory_store import MemoryKVStore
from .collection import Collection
from .config import resolve_options
from .errors import ConfigurationError

if TYPE_CHECKING:
    from ..interfaces.store import OrderedKVStore
    from .config import CollectionOptions, GlobalOptions

logger = logging.getLogger(__name__)


class Collections(Mapping[str, Collection]):
    """Immutable name -> Collection mapping sharing one store.

    Args:
        store: Store every collection reads and writes
        collections: Collections to register; names must be unique
    """

    def __init__(self, store: OrderedKVStore, collections: list[Collection]):
        self.store = store
        by_name: dict[str, Collection] = {}
        for collection in collections:
            if collection.name in by_name:
                raise ConfigurationError(f"Duplicate collection name: {collection.name!r}")
            by_name[collection.name] = collection
        self.collections: Mapping[str, Collection] = MappingProxyType(by_name)

    def __getitem__(self, name: str) -> Collection:
        return self.collections[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.collections)

    def __len__(self) -> int:
        return len(self.collections)

    def public(self) -> list[Collection]:
        """Collections exposed at the HTTP boundary (not internal)."""
        return [c for c in self.collections.values() if not c.internal]

    def close(self) -> None:
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_collections(
    definitions: Mapping[str, CollectionOptions | Mapping[str, Any] | None],
    store: OrderedKVStore | None = None,
    global_options: GlobalOptions | None = None,
) -> Collections:
    """Build the registry from static collection definitions.

    Options merge as defaults <- global_options <- per-collection options.
    A MemoryKVStore is opened when no store is given.
    """
    if store is None:
        store = MemoryKVStore()
    collections = [
        Collection(store, resolve_options(name, options, global_options))
        for name, options in definitions.items()
    ]
    registry = Collections(store, collections)
    logger.info(
        f"Initialized {len(registry)} collection(s): "
        + ", ".join(f"{c.name}{' (internal)' if c.internal else ''}" for c in collections)
    )
    return registry
