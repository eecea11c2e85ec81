"""Unique id generation.

Record ids are ULIDs from python-ulid: 26 Crockford base32 characters whose
lexical order follows creation time.
"""

from __future__ import annotations

import threading
from typing import Callable

from ulid import ULID

__all__ = ["MonotonicUlid", "ulid"]


class MonotonicUlid:
    """ULID factory whose ids sort in generation order.

    Two ULIDs drawn in the same millisecond compare in random order; when a
    fresh value does not exceed the previous one, the previous value plus one
    is used instead.
    """

    def __init__(self, factory: Callable[[], ULID] = ULID):
        self._factory = factory
        self._lock = threading.Lock()
        self._last: int | None = None

    def __call__(self) -> str:
        with self._lock:
            value = int(self._factory())
            if self._last is not None and value <= self._last:
                value = self._last + 1
            self._last = value
        return str(ULID.from_int(value))


ulid = MonotonicUlid()
