"""Unit tests for MemoryKVStore."""

from __future__ import annotations

import asyncio

import pytest

from kvcollections.components.memory_store import MemoryKVStore


async def collect(iterator):
    return [entry async for entry in iterator]


@pytest.mark.asyncio
async def test_set_get_roundtrip(store):
    """Test basic set and get operations."""
    result = await store.set(("tasks", "A"), {"project": "x"})
    entry = await store.get(("tasks", "A"))

    assert result.ok
    assert entry.key == ("tasks", "A")
    assert entry.value == {"project": "x"}
    assert entry.versionstamp == result.versionstamp
    assert await store.get(("tasks", "missing")) is None


@pytest.mark.asyncio
async def test_versionstamps_increase(store):
    """Test that every write yields a larger version marker."""
    first = await store.set(("k",), 1)
    second = await store.set(("k",), 2)
    other = await store.set(("other",), 3)

    assert first.versionstamp < second.versionstamp < other.versionstamp
    assert len(first.versionstamp) == 20


@pytest.mark.asyncio
async def test_values_are_not_aliased(store):
    """Test that callers cannot mutate stored state."""
    value = {"tags": ["a"]}
    await store.set(("k",), value)
    value["tags"].append("b")

    entry = await store.get(("k",))
    entry.value["tags"].append("c")

    assert (await store.get(("k",))).value == {"tags": ["a"]}


@pytest.mark.asyncio
async def test_delete_is_idempotent(store):
    """Test that deleting absent keys is not an error."""
    await store.set(("k",), 1)
    await store.delete(("k",))
    await store.delete(("k",))
    assert await store.get(("k",)) is None
    assert len(store) == 0


@pytest.mark.asyncio
async def test_scan_prefix_order_and_bounds(store):
    """Test that scan returns exactly the keys under a prefix, in order."""
    for key in [("tasks", "B"), ("tasks", "A"), ("tasks", "C", "deep"), ("tasksX", "A"), ("tasks",)]:
        await store.set(key, {})

    keys = [entry.key for entry in await collect(store.scan(("tasks",)))]
    assert keys == [("tasks", "A"), ("tasks", "B"), ("tasks", "C", "deep")]


@pytest.mark.asyncio
async def test_scan_limit_reverse_and_bounds(store):
    """Test the optional scan controls."""
    for name in "ABCDE":
        await store.set(("t", name), name)

    assert [e.value for e in await collect(store.scan(("t",), limit=2))] == ["A", "B"]
    assert [e.value for e in await collect(store.scan(("t",), reverse=True, limit=2))] == ["E", "D"]
    bounded = store.scan(("t",), start_after=("t", "B"), end_before=("t", "E"))
    assert [e.value for e in await collect(bounded)] == ["C", "D"]
    backwards = store.scan(("t",), start_after=("t", "A"), end_before=("t", "D"), reverse=True)
    assert [e.value for e in await collect(backwards)] == ["C", "B"]
    assert await collect(store.scan(("t",), limit=0)) == []


@pytest.mark.asyncio
async def test_scan_is_restartable(store):
    """Test that each scan call yields a fresh iteration."""
    await store.set(("t", "A"), 1)
    first = await collect(store.scan(("t",)))
    await store.set(("t", "B"), 2)
    second = await collect(store.scan(("t",)))
    assert len(first) == 1
    assert len(second) == 2


@pytest.mark.asyncio
async def test_scan_reads_snapshot_of_range(store):
    """Test that writes during a scan are not observed by it."""
    await store.set(("t", "A"), 1)
    await store.set(("t", "B"), 2)

    seen = []
    async for entry in store.scan(("t",)):
        seen.append(entry.key)
        await store.set(("t", "C"), 3)
        await store.delete(("t", "B"))

    assert seen == [("t", "A"), ("t", "B")]


@pytest.mark.asyncio
async def test_closed_store_rejects_operations():
    """Test that a closed store refuses reads and writes."""
    with MemoryKVStore() as store:
        await store.set(("k",), 1)
    with pytest.raises(RuntimeError):
        await store.get(("k",))
    with pytest.raises(RuntimeError):
        await store.set(("k",), 1)


def test_items_in_key_order():
    """Test administrative iteration order."""
    store = MemoryKVStore()

    async def fill():
        await store.set(("b",), 2)
        await store.set(("a",), 1)
        await store.set((1,), 0)

    asyncio.run(fill())
    assert [entry.key for entry in store.items()] == [("a",), ("b",), (1,)]
    store.close()
