"""Exception hierarchy for kv-collections.

Defines all custom exceptions used throughout the implementation.
Not-found is never an exception: engine operations return None instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .types import Key


class CollectionsError(Exception):
    """Base exception for all kv-collections errors."""

    kind = "collections_error"
    key: Key | None = None


class ConfigurationError(CollectionsError):
    """Raised when a collection or index definition is invalid."""

    kind = "configuration_error"


class KeyEncodingError(CollectionsError):
    """Raised when a key part cannot be encoded or decoded."""

    kind = "key_encoding_error"


class InvalidRecordError(CollectionsError):
    """Raised when a record body is not a JSON-like mapping."""

    kind = "invalid_record"


class UnknownIndexError(CollectionsError):
    """Raised when listing a secondary index that is not registered."""

    kind = "unknown_index"

    def __init__(self, collection: str, index_name: str):
        super().__init__(f"Collection {collection!r} has no index {index_name!r}")
        self.collection = collection
        self.index_name = index_name


class WriteFailureError(CollectionsError):
    """Raised when the store reports a failed write on a primary key."""

    kind = "write_failure"

    def __init__(self, key: Key, message: str = "Store rejected write"):
        super().__init__(f"{message}: {key!r}")
        self.key = key


class PartialIndexFailureError(CollectionsError):
    """Raised when secondary index maintenance fails after the primary write.

    The primary mutation has already been committed and is not rolled back.
    ``failures`` holds one ``(index_key, exception)`` pair per failed sub-write.
    """

    kind = "partial_index_failure"

    def __init__(self, record_id: str, failures: Sequence[tuple[Key, BaseException]]):
        self.record_id = record_id
        self.failures = list(failures)
        self.key = self.failures[0][0] if self.failures else None
        super().__init__(
            f"{len(self.failures)} secondary index update(s) failed for id {record_id!r}"
        )
