"""Keyspace layout for collections and their secondary indexes.

Pure functions mapping logical identifiers to physical store keys:

    primary entry:  (collection, id)
    index entry:    (collection + INDEX_SUFFIX, index_name, *key_parts, id)

Index entries live in a namespace of their own. A collection name may not
end with INDEX_SUFFIX, so no primary namespace can overlap another
collection's index namespace.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import ConfigurationError, KeyEncodingError
from .types import Key, KeyPart

INDEX_SUFFIX = "$$secondaryIndex"

_KEY_PART_TYPES = (bytes, str, int, float, bool)


def validate_collection_name(collection: str) -> str:
    if not isinstance(collection, str) or not collection:
        raise ConfigurationError(f"Collection name must be a non-empty string: {collection!r}")
    if collection.endswith(INDEX_SUFFIX):
        raise ConfigurationError(
            f"Collection name {collection!r} may not end with reserved suffix {INDEX_SUFFIX!r}"
        )
    return collection


def collection_prefix(collection: str) -> Key:
    """Prefix under which every primary record of collection lives."""
    return (collection,)


def primary_key(collection: str, record_id: str) -> Key:
    return (collection, record_id)


def index_namespace(collection: str) -> str:
    return collection + INDEX_SUFFIX


def index_key(
    collection: str, index_name: str, key_parts: Sequence[KeyPart], record_id: str
) -> Key:
    """Full key of one secondary index entry."""
    return (*index_prefix(collection, index_name, key_parts), record_id)


def index_prefix(collection: str, index_name: str, key_parts: Sequence[KeyPart]) -> Key:
    """Scan prefix for index entries whose derived key starts with key_parts.

    This is not a full key: every entry found under it ends with a record id.
    """
    return (index_namespace(collection), index_name, *key_parts)


def record_id_from_key(key: Key) -> str:
    """Trailing id component of a primary or index key."""
    if not key:
        raise KeyEncodingError("Empty key has no record id")
    record_id = key[-1]
    if not isinstance(record_id, str):
        raise KeyEncodingError(f"Record id must be a string, got {type(record_id).__name__}")
    return record_id


def normalize_key_parts(parts: KeyPart | Sequence[KeyPart]) -> tuple[KeyPart, ...]:
    """Coerce keyBuilder output to a tuple of key parts.

    A single part (including str and bytes) is a one-element key.
    """
    if isinstance(parts, _KEY_PART_TYPES):
        return (parts,)
    if isinstance(parts, Sequence):
        result = tuple(parts)
        for part in result:
            if not isinstance(part, _KEY_PART_TYPES):
                raise KeyEncodingError(f"Unsupported key part type: {type(part).__name__}")
        return result
    raise KeyEncodingError(f"Key builder returned unsupported value: {parts!r}")
