"""kv-collections - REST-style collections with secondary indexes over an ordered KV store."""

from .core.collection import Collection
from .core.config import CollectionConfig, CollectionOptions, GlobalOptions
from .core.errors import (
    CollectionsError,
    ConfigurationError,
    InvalidRecordError,
    KeyEncodingError,
    PartialIndexFailureError,
    UnknownIndexError,
    WriteFailureError,
)
from .core.registry import Collections, create_collections
from .core.types import (
    ID_FIELD,
    VERSIONSTAMP_FIELD,
    Key,
    KeyBuilder,
    KeyPart,
    ResultWithMetadata,
    SetResult,
    StoreEntry,
)
from .components.ids import ulid
from .components.memory_store import MemoryKVStore

__all__ = [
    "Collection",
    "CollectionConfig",
    "CollectionOptions",
    "GlobalOptions",
    "CollectionsError",
    "ConfigurationError",
    "InvalidRecordError",
    "KeyEncodingError",
    "PartialIndexFailureError",
    "UnknownIndexError",
    "WriteFailureError",
    "Collections",
    "create_collections",
    "ID_FIELD",
    "VERSIONSTAMP_FIELD",
    "Key",
    "KeyBuilder",
    "KeyPart",
    "ResultWithMetadata",
    "SetResult",
    "StoreEntry",
    "ulid",
    "MemoryKVStore",
]
