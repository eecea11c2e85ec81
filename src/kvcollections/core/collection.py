"""Collection engine: CRUD over one named collection with secondary indexes.

Orchestrates primary record writes and secondary index maintenance on top
of an OrderedKVStore.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from . import keyspace
from .errors import (
    InvalidRecordError,
    PartialIndexFailureError,
    UnknownIndexError,
    WriteFailureError,
)
from .types import ID_FIELD, METADATA_PREFIX, VERSIONSTAMP_FIELD

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Sequence

    from ..interfaces.store import OrderedKVStore
    from .config import CollectionConfig
    from .types import Key, KeyPart, Record, ResultWithMetadata, Versionstamp

logger = logging.getLogger(__name__)


class Collection:
    """One named collection of JSON-like records.

    Args:
        store: Ordered key-value store shared by all collections
        config: Resolved collection options

    Public API:
        - list() / iter_all(): every record, ascending by id
        - list_subcollection(index, parts) / iter_subcollection(...): index lookup
        - get(id): record or None
        - append(record): store under a fresh id
        - replace(id, record): overwrite, or None if absent
        - merge(id, partial): shallow update, or None if absent
        - delete(id): remove, or None if absent

    Invariants:
        - Primary write happens before any index maintenance
        - Old index entries are removed before new ones are written
        - Index fan-out is awaited in full before an operation returns or fails
        - A failed index fan-out never rolls back the primary write
    """

    def __init__(self, store: OrderedKVStore, config: CollectionConfig):
        self._store = store
        self.config = config
        self.name = keyspace.validate_collection_name(config.name)

    @property
    def internal(self) -> bool:
        return self.config.internal

    @property
    def index_names(self) -> list[str]:
        return list(self.config.secondary_indexes)

    def __repr__(self) -> str:
        return f"Collection({self.name!r}, indexes={self.index_names!r})"

    # ─── Reads ──────────────────────────────────────────────────────────────

    async def iter_all(
        self, *, limit: int | None = None, reverse: bool = False
    ) -> AsyncIterator[ResultWithMetadata]:
        """Lazily yield every record of the collection in id order."""
        prefix = keyspace.collection_prefix(self.name)
        async for entry in self._store.scan(prefix, limit=limit, reverse=reverse):
            record_id = keyspace.record_id_from_key(entry.key)
            yield _with_metadata(record_id, entry.versionstamp, entry.value)

    async def list(
        self, *, limit: int | None = None, reverse: bool = False
    ) -> list[ResultWithMetadata]:
        """Return every record of the collection in id order."""
        return [record async for record in self.iter_all(limit=limit, reverse=reverse)]

    async def iter_subcollection(
        self,
        index_name: str,
        key_parts: Sequence[KeyPart] = (),
        *,
        limit: int | None = None,
        reverse: bool = False,
    ) -> AsyncIterator[ResultWithMetadata]:
        """Lazily yield records whose index key starts with key_parts.

        Index entries pointing at a missing record are skipped.
        """
        if index_name not in self.config.secondary_indexes:
            raise UnknownIndexError(self.name, index_name)
        prefix = keyspace.index_prefix(
            self.name, index_name, keyspace.normalize_key_parts(key_parts)
        )
        async for entry in self._store.scan(prefix, limit=limit, reverse=reverse):
            record_id = keyspace.record_id_from_key(entry.key)
            record = await self.get(record_id)
            if record is None:
                logger.warning(
                    f"Skipping dangling index entry {entry.key!r}: "
                    f"no record {record_id!r} in {self.name!r}"
                )
                continue
            yield record

    async def list_subcollection(
        self,
        index_name: str,
        key_parts: Sequence[KeyPart] = (),
        *,
        limit: int | None = None,
        reverse: bool = False,
    ) -> list[ResultWithMetadata]:
        """Return records whose index key starts with key_parts."""
        return [
            record
            async for record in self.iter_subcollection(
                index_name, key_parts, limit=limit, reverse=reverse
            )
        ]

    async def get(self, record_id: str) -> ResultWithMetadata | None:
        """Return the record stored under record_id, or None."""
        entry = await self._store.get(keyspace.primary_key(self.name, record_id))
        if entry is None or entry.value is None:
            return None
        return _with_metadata(record_id, entry.versionstamp, entry.value)

    # ─── Writes ─────────────────────────────────────────────────────────────

    async def append(self, record: Mapping[str, Any]) -> ResultWithMetadata:
        """Store record under a freshly generated id."""
        value = _prepare_record(record)
        record_id = self.config.create_id()
        new_index_keys = self._build_index_keys(record_id, value)

        versionstamp = await self._write_primary(record_id, value)
        logger.debug(f"Appended {self.name}/{record_id}")
        await self._fan_out(
            record_id, [self._store.set(key, {}) for key in new_index_keys], new_index_keys
        )
        return _with_metadata(record_id, versionstamp, value)

    async def replace(
        self, record_id: str, record: Mapping[str, Any]
    ) -> ResultWithMetadata | None:
        """Overwrite an existing record. Returns None if it does not exist."""
        value = _prepare_record(record)
        existing = await self._store.get(keyspace.primary_key(self.name, record_id))
        if existing is None or existing.value is None:
            return None
        result = await self._rewrite(record_id, existing.value, value)
        logger.debug(f"Replaced {self.name}/{record_id}")
        return result

    async def merge(
        self, record_id: str, partial: Mapping[str, Any]
    ) -> ResultWithMetadata | None:
        """Shallow-merge partial into an existing record. None if absent."""
        changes = _prepare_record(partial)
        existing = await self._store.get(keyspace.primary_key(self.name, record_id))
        if existing is None or existing.value is None:
            return None
        value = {**existing.value, **changes}
        result = await self._rewrite(record_id, existing.value, value)
        logger.debug(f"Merged {sorted(changes)} into {self.name}/{record_id}")
        return result

    async def delete(self, record_id: str) -> ResultWithMetadata | None:
        """Remove a record and its index entries. None if absent.

        Returns the record as it was before deletion.
        """
        key = keyspace.primary_key(self.name, record_id)
        existing = await self._store.get(key)
        if existing is None or existing.value is None:
            return None
        old_index_keys = self._build_index_keys(record_id, existing.value)

        await self._store.delete(key)
        logger.debug(f"Deleted {self.name}/{record_id}")
        await self._fan_out(
            record_id, [self._store.delete(key) for key in old_index_keys], old_index_keys
        )
        return _with_metadata(record_id, existing.versionstamp, existing.value)

    # ─── Internals ──────────────────────────────────────────────────────────

    async def _rewrite(
        self, record_id: str, old_value: Mapping[str, Any], new_value: Record
    ) -> ResultWithMetadata:
        """Write new_value over old_value and migrate index entries."""
        old_index_keys = self._build_index_keys(record_id, old_value)
        new_index_keys = self._build_index_keys(record_id, new_value)
        # Entries derived identically from both versions are rewritten, not removed
        kept = set(new_index_keys)
        stale_keys = [key for key in old_index_keys if key not in kept]

        versionstamp = await self._write_primary(record_id, new_value)
        await self._fan_out(
            record_id, [self._store.delete(key) for key in stale_keys], stale_keys
        )
        await self._fan_out(
            record_id, [self._store.set(key, {}) for key in new_index_keys], new_index_keys
        )
        return _with_metadata(record_id, versionstamp, new_value)

    async def _write_primary(self, record_id: str, value: Record) -> Versionstamp:
        key = keyspace.primary_key(self.name, record_id)
        result = await self._store.set(key, value)
        if not result.ok:
            logger.warning(f"Primary write rejected for {key!r}")
            raise WriteFailureError(key)
        return result.versionstamp

    def _build_index_keys(self, record_id: str, value: Mapping[str, Any]) -> list[Key]:
        """One index key per registered index, derived from value."""
        return [
            keyspace.index_key(
                self.name, index_name, keyspace.normalize_key_parts(builder(value)), record_id
            )
            for index_name, builder in self.config.secondary_indexes.items()
        ]

    async def _fan_out(
        self, record_id: str, operations: list[Awaitable[Any]], keys: Sequence[Key]
    ) -> None:
        """Run index sub-operations concurrently and wait for all of them."""
        if not operations:
            return
        results = await asyncio.gather(*operations, return_exceptions=True)
        failures = []
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append((key, result))
            elif getattr(result, "ok", True) is False:
                failures.append((key, WriteFailureError(key, "Store rejected index write")))
        if failures:
            logger.error(
                f"Index maintenance failed for {self.name}/{record_id}: "
                f"{len(failures)} of {len(operations)} sub-operations; primary write kept"
            )
            raise PartialIndexFailureError(record_id, failures)


def _prepare_record(record: Any) -> Record:
    """Copy a caller's record, dropping reserved metadata fields."""
    if not isinstance(record, Mapping):
        raise InvalidRecordError(f"Record must be a mapping, got {type(record).__name__}")
    prepared = {}
    for field_name, field_value in record.items():
        if not isinstance(field_name, str):
            raise InvalidRecordError(f"Record field names must be strings: {field_name!r}")
        if field_name.startswith(METADATA_PREFIX):
            continue
        prepared[field_name] = field_value
    return prepared


def _with_metadata(
    record_id: str, versionstamp: Versionstamp, value: Mapping[str, Any]
) -> ResultWithMetadata:
    result: ResultWithMetadata = {ID_FIELD: record_id, VERSIONSTAMP_FIELD: versionstamp}
    for field_name, field_value in value.items():
        if not field_name.startswith(METADATA_PREFIX):
            result[field_name] = field_value
    return result
