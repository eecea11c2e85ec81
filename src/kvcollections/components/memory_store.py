"""In-memory ordered key-value store.

Uses sortedcontainers.SortedDict over order-preserving encoded keys.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any

from sortedcontainers import SortedDict

from ..core.types import SetResult, StoreEntry
from .key_codec import encode_key, prefix_range

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from ..core.types import Key, Versionstamp

logger = logging.getLogger(__name__)


class MemoryKVStore:
    """Process-local ordered key-value store.

    Each entry is held as encoded_key -> (key, value, versionstamp).

    Invariants:
        - Keys are always maintained in encoded (part-wise) order
        - Version markers strictly increase with every successful write
        - Stored values are never aliased by callers (copied in and out)
    """

    def __init__(self):
        """Initialize empty store."""
        self._data: SortedDict = SortedDict()
        self._version_counter: int = 0
        self._closed: bool = False
        logger.info("Opened in-memory KV store")

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Store is closed")

    def _next_versionstamp(self) -> Versionstamp:
        """Generate monotonically increasing 20-hex-digit version marker."""
        self._version_counter += 1
        return f"{self._version_counter:020x}"

    async def get(self, key: Key) -> StoreEntry | None:
        """Return the entry at key, or None if absent."""
        self._check_open()
        encoded = encode_key(key)
        await asyncio.sleep(0)
        found = self._data.get(encoded)
        if found is None:
            return None
        stored_key, value, versionstamp = found
        return StoreEntry(stored_key, copy.deepcopy(value), versionstamp)

    async def set(self, key: Key, value: Any) -> SetResult:
        """Write value at key. Always succeeds for this store."""
        self._check_open()
        encoded = encode_key(key)
        await asyncio.sleep(0)
        versionstamp = self._next_versionstamp()
        self._data[encoded] = (tuple(key), copy.deepcopy(value), versionstamp)
        return SetResult(True, versionstamp)

    async def delete(self, key: Key) -> None:
        """Remove key if present."""
        self._check_open()
        encoded = encode_key(key)
        await asyncio.sleep(0)
        self._data.pop(encoded, None)

    async def scan(
        self,
        prefix: Key,
        *,
        start_after: Key | None = None,
        end_before: Key | None = None,
        limit: int | None = None,
        reverse: bool = False,
    ) -> AsyncIterator[StoreEntry]:
        """Iterate entries strictly under prefix, in key order.

        The matching key range is snapshotted when iteration starts; entries
        written afterwards are not observed by this iteration.
        """
        self._check_open()
        lower, upper = prefix_range(prefix)
        include_lower = True
        if start_after is not None:
            after = encode_key(start_after)
            if after >= lower:
                lower, include_lower = after, False
        if end_before is not None:
            upper = min(upper, encode_key(end_before))
        if limit is not None and limit <= 0:
            return

        snapshot = [
            self._data[encoded]
            for encoded in self._data.irange(
                lower, upper, inclusive=(include_lower, False), reverse=reverse
            )
        ]
        for count, (stored_key, value, versionstamp) in enumerate(snapshot, start=1):
            await asyncio.sleep(0)
            yield StoreEntry(stored_key, copy.deepcopy(value), versionstamp)
            if limit is not None and count >= limit:
                break

    def items(self) -> Iterator[StoreEntry]:
        """Return iterator of all entries in key order (administrative)."""
        for stored_key, value, versionstamp in self._data.values():
            yield StoreEntry(stored_key, copy.deepcopy(value), versionstamp)

    def __len__(self) -> int:
        return len(self._data)

    def close(self) -> None:
        """Close store and drop its contents."""
        logger.info("Closing in-memory KV store")
        self._data.clear()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
