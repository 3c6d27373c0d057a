from __future__ import annotations

import copy
import threading
from collections.abc import Sequence
from typing import Any

"""In-memory RecordStore (mock mode).

Used when DISABLE_DB_CONNECT=1 or backend=memory, and as the injected fake
store in tests. State lives for the lifetime of the instance only. A single
lock makes counter increments atomic across threads.
"""

__all__ = [
    "InMemoryStore",
]


class InMemoryStore:
    """Thread-safe dict-backed store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._collections: dict[str, list[dict[str, Any]]] = {}
        self._counters: dict[str, int] = {}

    def insert_many(self, collection: str, records: Sequence[dict[str, Any]]) -> int:
        copied = [copy.deepcopy(r) for r in records]
        with self._lock:
            self._collections.setdefault(collection, []).extend(copied)
        return len(copied)

    def increment_counter(self, key: str) -> int:
        with self._lock:
            value = self._counters.get(key, 0) + 1
            self._counters[key] = value
            return value

    def set_counter(self, key: str, value: int) -> None:
        with self._lock:
            self._counters[key] = value

    def get_counter(self, key: str) -> int | None:
        with self._lock:
            return self._counters.get(key)

    def delete_all(self, collection: str) -> int:
        with self._lock:
            removed = self._collections.pop(collection, [])
        return len(removed)

    def find_all(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._collections.get(collection, [])]

    def close(self) -> None:  # pragma: no cover (nothing to release)
        pass
