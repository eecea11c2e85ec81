"""Protocol definition for the ordered key-value store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

from ..core.types import Key, SetResult, StoreEntry


@runtime_checkable
class OrderedKVStore(Protocol):
    """Storage primitive the collection engine is built on.

    Keys are tuples of key parts ordered part by part. Every method acts on
    a single key atomically; nothing spans keys.
    """

    async def get(self, key: Key) -> StoreEntry | None:
        """Return the entry at key, or None if absent."""
        ...

    async def set(self, key: Key, value: Any) -> SetResult:
        """Write value at key; report success and the new version marker."""
        ...

    async def delete(self, key: Key) -> None:
        """Remove key. Deleting an absent key is not an error."""
        ...

    def scan(
        self,
        prefix: Key,
        *,
        start_after: Key | None = None,
        end_before: Key | None = None,
        limit: int | None = None,
        reverse: bool = False,
    ) -> AsyncIterator[StoreEntry]:
        """Lazily iterate entries strictly under prefix, in key order.

        start_after and end_before are exclusive bounds; both must extend
        prefix. A key equal to either bound is not yielded.
        """
        ...

    def close(self) -> None:
        """Release resources held by the store."""
        ...
