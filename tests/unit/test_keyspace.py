"""Unit tests for the keyspace layout."""

import pytest

from kvcollections.core import keyspace
from kvcollections.core.errors import ConfigurationError, KeyEncodingError
from kvcollections.components.key_codec import encode_key, prefix_range


def test_primary_key_layout():
    """Test that primary keys are (collection, id)."""
    assert keyspace.primary_key("tasks", "A") == ("tasks", "A")
    assert keyspace.collection_prefix("tasks") == ("tasks",)


def test_index_key_layout():
    """Test that index keys are (collection+suffix, index, *parts, id)."""
    key = keyspace.index_key("tasks", "by-project", ("x", "2024-01-01"), "A")
    assert key == ("tasks$$secondaryIndex", "by-project", "x", "2024-01-01", "A")


def test_index_prefix_is_prefix_of_index_key():
    """Test that every index key extends its scan prefix."""
    prefix = keyspace.index_prefix("tasks", "by-project", ("x",))
    key = keyspace.index_key("tasks", "by-project", ("x", "2024-01-01"), "A")
    assert key[: len(prefix)] == prefix
    start, end = prefix_range(prefix)
    assert start <= encode_key(key) < end


def test_index_namespace_disjoint_from_primary():
    """Test that index entries never fall under a collection's primary prefix."""
    start, end = prefix_range(keyspace.collection_prefix("tasks"))
    key = keyspace.index_key("tasks", "by-project", ("x",), "A")
    assert not start <= encode_key(key) < end


def test_record_id_from_key():
    """Test that the id is the trailing key component."""
    assert keyspace.record_id_from_key(("tasks", "A")) == "A"
    assert keyspace.record_id_from_key(("tasks$$secondaryIndex", "i", 1, "B")) == "B"
    with pytest.raises(KeyEncodingError):
        keyspace.record_id_from_key(("tasks", 7))
    with pytest.raises(KeyEncodingError):
        keyspace.record_id_from_key(())


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("x", ("x",)),
        (b"x", (b"x",)),
        (5, (5,)),
        (["x", 1], ("x", 1)),
        (("x", True), ("x", True)),
        ([], ()),
    ],
)
def test_normalize_key_parts(raw, expected):
    """Test that key builder output becomes a tuple of parts."""
    assert keyspace.normalize_key_parts(raw) == expected


def test_normalize_rejects_nested_values():
    """Test that non key-part elements are rejected."""
    with pytest.raises(KeyEncodingError):
        keyspace.normalize_key_parts(["x", {"nested": 1}])
    with pytest.raises(KeyEncodingError):
        keyspace.normalize_key_parts(None)


@pytest.mark.parametrize("name", ["", "tasks$$secondaryIndex", None])
def test_invalid_collection_names(name):
    """Test that names colliding with the index namespace are refused."""
    with pytest.raises(ConfigurationError):
        keyspace.validate_collection_name(name)
