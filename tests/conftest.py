"""Shared fixtures for kv-collections tests."""

from __future__ import annotations

import itertools

import pytest

from kvcollections import CollectionOptions, MemoryKVStore, SetResult, create_collections


class SequentialIds:
    """Deterministic, lexically sortable id factory."""

    def __init__(self, prefix: str = "id"):
        self._counter = itertools.count(1)
        self._prefix = prefix

    def __call__(self) -> str:
        return f"{self._prefix}{next(self._counter):04d}"


class FaultyStore(MemoryKVStore):
    """MemoryKVStore that can reject or fail writes on chosen keys.

    reject_when(key): set() returns ok=False for matching keys
    fail_when(key): set()/delete() raise RuntimeError for matching keys
    values: every (key, value) handed to set(), uncopied
    """

    def __init__(self):
        super().__init__()
        self.reject_when = lambda key: False
        self.fail_when = lambda key: False
        self.calls: list[tuple[str, tuple]] = []
        self.values: list[tuple[tuple, object]] = []

    async def set(self, key, value):
        self.calls.append(("set", tuple(key)))
        self.values.append((tuple(key), value))
        if self.fail_when(key):
            raise RuntimeError(f"injected set failure at {key!r}")
        if self.reject_when(key):
            return SetResult(False, None)
        return await super().set(key, value)

    async def delete(self, key):
        self.calls.append(("delete", tuple(key)))
        if self.fail_when(key):
            raise RuntimeError(f"injected delete failure at {key!r}")
        await super().delete(key)


def task_by_project(task):
    return [task["project"], task["date"]]


@pytest.fixture
def store():
    """Create empty in-memory store for tests."""
    store = MemoryKVStore()
    yield store
    store.close()


@pytest.fixture
def faulty_store():
    store = FaultyStore()
    yield store
    store.close()


@pytest.fixture
def collections(store):
    """Registry with an unindexed and an indexed collection."""
    return create_collections(
        {
            "projects": CollectionOptions(create_id=SequentialIds("p")),
            "tasks": CollectionOptions(
                create_id=SequentialIds("t"),
                secondary_indexes={"by-project": task_by_project},
            ),
        },
        store=store,
    )


@pytest.fixture
def tasks(collections):
    return collections["tasks"]


@pytest.fixture
def make_ids():
    """Factory for deterministic id generators."""
    return SequentialIds


@pytest.fixture
def faulty_tasks(faulty_store):
    """Indexed tasks collection on a store with injectable failures."""
    registry = create_collections(
        {
            "tasks": CollectionOptions(
                create_id=SequentialIds("t"),
                secondary_indexes={
                    "by-project": task_by_project,
                    "by-owner": lambda task: task.get("owner", "nobody"),
                },
            ),
        },
        store=faulty_store,
    )
    return registry["tasks"]
