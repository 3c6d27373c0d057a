from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

"""RecordStore protocol: the durable store interface the core depends on.

Implementations: PostgresStore (psycopg2), MongoStore (pymongo) and
InMemoryStore (mock mode / tests). All operations are blocking I/O; callers use
the result only after the call returns.
"""

__all__ = [
    "RecordStore",
]


@runtime_checkable
class RecordStore(Protocol):
    def insert_many(self, collection: str, records: Sequence[dict[str, Any]]) -> int:
        """Insert all records into ``collection`` in one batch; return inserted count."""
        ...

    def increment_counter(self, key: str) -> int:
        """Atomically find-and-increment (or create at 0 then increment); return new value."""
        ...

    def set_counter(self, key: str, value: int) -> None:
        """Set (upsert) a counter to ``value``."""
        ...

    def get_counter(self, key: str) -> int | None:
        """Current counter value, or None if the counter was never created."""
        ...

    def delete_all(self, collection: str) -> int:
        """Delete every record in ``collection``; return deleted count."""
        ...

    def find_all(self, collection: str) -> list[dict[str, Any]]:
        """Read every record in ``collection``."""
        ...

    def close(self) -> None:
        ...
