from __future__ import annotations

import logging

from ..db.store import RecordStore

"""Sequential ID generator (``spb-0001``, ``spb-0002``, ...).

One global counter per destination dataset, stored in the durable store under
``counter_key``. Every next_id() is a single atomic find-and-increment in the
store; the value is never cached here, so concurrent callers (threads or
processes sharing the store) always receive distinct numbers.

Store failures propagate unchanged (StoreUnavailableError / StoreQueryError).
"""

__all__ = [
    "DEFAULT_COUNTER_KEY",
    "ID_WIDTH",
    "SequenceGenerator",
    "format_id",
]

logger = logging.getLogger(__name__)

DEFAULT_COUNTER_KEY = "item_id"
ID_WIDTH = 4


def format_id(prefix: str, number: int, width: int = ID_WIDTH) -> str:
    """Format ``{prefix}-{number}`` zero-padded to ``width`` digits.

    Numbers wider than ``width`` are rendered in full (no truncation).

    >>> format_id("spb", 7)
    'spb-0007'
    >>> format_id("spb", 12345)
    'spb-12345'
    """
    return f"{prefix}-{number:0{width}d}"


class SequenceGenerator:
    """Issues prefixed IDs from a store-backed counter."""

    def __init__(self, store: RecordStore, counter_key: str = DEFAULT_COUNTER_KEY, width: int = ID_WIDTH) -> None:
        self.store = store
        self.counter_key = counter_key
        self.width = width

    def next_number(self) -> int:
        """Atomically increment the counter and return the new value (first call -> 1)."""
        return self.store.increment_counter(self.counter_key)

    def next_id(self, prefix: str) -> str:
        return format_id(prefix, self.next_number(), self.width)

    def reset(self) -> None:
        """Reset the counter to 0; the next ID is ``{prefix}-0001`` again."""
        self.store.set_counter(self.counter_key, 0)
        logger.debug("counter=%s reset to 0", self.counter_key)

    def current(self) -> int | None:
        """Current counter value without incrementing (None = never used)."""
        return self.store.get_counter(self.counter_key)

    def last_id(self, prefix: str) -> str | None:
        seq = self.current()
        return format_id(prefix, seq, self.width) if seq is not None else None

    def peek_next_id(self, prefix: str) -> str:
        """The ID the next call to next_id() would return (absent concurrent callers)."""
        seq = self.current() or 0
        return format_id(prefix, seq + 1, self.width)
