"""Configuration for collections.

Defines the options a collection is built from and how per-collection,
global and default options are merged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any

from ..components.ids import ulid
from .errors import ConfigurationError
from .types import IdFactory, KeyBuilders


@dataclass
class GlobalOptions:
    """Defaults applied to every collection of a registry.

    Attributes:
        create_id: Factory producing fresh, lexically sortable record ids
        internal: Whether collections are hidden from the HTTP layer
    """

    create_id: IdFactory | None = None
    internal: bool | None = None


@dataclass
class CollectionOptions:
    """Options for a single collection. Unset (None) fields are inherited.

    Attributes:
        create_id: Factory producing fresh, lexically sortable record ids
        secondary_indexes: Index name -> key builder
        internal: Whether the collection is hidden from the HTTP layer
    """

    create_id: IdFactory | None = None
    secondary_indexes: KeyBuilders | None = None
    internal: bool | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CollectionOptions:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown collection option(s): {sorted(unknown)}")
        return cls(**data)


@dataclass(frozen=True)
class CollectionConfig:
    """Fully resolved, immutable options of a collection."""

    name: str
    create_id: IdFactory
    secondary_indexes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    internal: bool = False


DEFAULT_OPTIONS = CollectionOptions(create_id=ulid, secondary_indexes={}, internal=False)


def resolve_options(
    name: str,
    options: CollectionOptions | Mapping[str, Any] | None = None,
    global_options: GlobalOptions | None = None,
) -> CollectionConfig:
    """Merge defaults <- global options <- collection options (later wins)."""
    if options is None:
        options = CollectionOptions()
    elif isinstance(options, Mapping):
        options = CollectionOptions.from_mapping(options)
    global_options = global_options or GlobalOptions()

    create_id = _first_set(options.create_id, global_options.create_id, DEFAULT_OPTIONS.create_id)
    internal = _first_set(options.internal, global_options.internal, DEFAULT_OPTIONS.internal)
    indexes = _first_set(options.secondary_indexes, DEFAULT_OPTIONS.secondary_indexes)

    if not callable(create_id):
        raise ConfigurationError(f"create_id of collection {name!r} is not callable")
    return CollectionConfig(
        name=name,
        create_id=create_id,
        secondary_indexes=MappingProxyType(validate_indexes(name, indexes)),
        internal=bool(internal),
    )


def validate_indexes(collection: str, indexes: Any) -> dict[str, Any]:
    """Check an index name -> key builder mapping and return a copy of it."""
    if callable(indexes) or not isinstance(indexes, Mapping):
        raise ConfigurationError(
            f"secondary_indexes of collection {collection!r} must map index names to key builders"
        )
    validated = {}
    for index_name, builder in indexes.items():
        if not isinstance(index_name, str) or not index_name or "/" in index_name:
            raise ConfigurationError(
                f"Invalid index name {index_name!r} in collection {collection!r}"
            )
        if not callable(builder):
            raise ConfigurationError(
                f"Key builder for index {index_name!r} of collection {collection!r} is not callable"
            )
        validated[index_name] = builder
    return validated


def _first_set(*candidates):
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
