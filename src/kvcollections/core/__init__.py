"""Collection engine, keyspace layout and registry."""

from .collection import Collection
from .registry import Collections, create_collections

__all__ = ["Collection", "Collections", "create_collections"]
