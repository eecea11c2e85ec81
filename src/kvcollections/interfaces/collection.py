"""Protocol definition for a collection as seen by the HTTP layer."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from ..core.types import KeyPart, ResultWithMetadata


@runtime_checkable
class CollectionAPI(Protocol):
    """Record operations of one named collection."""

    name: str

    @property
    def internal(self) -> bool:
        """Whether the collection is hidden from the HTTP layer."""
        ...

    @property
    def index_names(self) -> list[str]:
        """Names of the registered secondary indexes."""
        ...

    async def list(self) -> list[ResultWithMetadata]:
        """Every record, ascending by id."""
        ...

    async def list_subcollection(
        self, index_name: str, key_parts: Sequence[KeyPart] = ()
    ) -> list[ResultWithMetadata]:
        """Records whose index key starts with key_parts."""
        ...

    async def get(self, record_id: str) -> ResultWithMetadata | None:
        """Record by id, or None."""
        ...

    async def append(self, record: Mapping[str, Any]) -> ResultWithMetadata:
        """Store under a fresh id."""
        ...

    async def replace(
        self, record_id: str, record: Mapping[str, Any]
    ) -> ResultWithMetadata | None:
        """Overwrite; None if absent."""
        ...

    async def merge(
        self, record_id: str, partial: Mapping[str, Any]
    ) -> ResultWithMetadata | None:
        """Shallow update; None if absent."""
        ...

    async def delete(self, record_id: str) -> ResultWithMetadata | None:
        """Remove; None if absent."""
        ...
