"""Common type definitions for kv-collections.

Defines fundamental types used across all components.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, NamedTuple

# Core primitive types
KeyPart = bytes | str | int | float | bool
Key = tuple[KeyPart, ...]
Versionstamp = str
Record = dict[str, Any]

# Index key derivation: record -> key parts (a single part is allowed)
KeyBuilder = Callable[[Mapping[str, Any]], KeyPart | Sequence[KeyPart]]
KeyBuilders = Mapping[str, KeyBuilder]
IdFactory = Callable[[], str]

# Reserved metadata fields added to records on output
METADATA_PREFIX = "$$"
ID_FIELD = METADATA_PREFIX + "id"
VERSIONSTAMP_FIELD = METADATA_PREFIX + "versionstamp"

# Metadata-augmented record: a Record carrying ID_FIELD and VERSIONSTAMP_FIELD
ResultWithMetadata = Record


class StoreEntry(NamedTuple):
    """One key/value pair as observed in the store."""

    key: Key
    value: Any
    versionstamp: Versionstamp


class SetResult(NamedTuple):
    """Outcome of a single-key write."""

    ok: bool
    versionstamp: Versionstamp | None
