from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..db.store import RecordStore
from ..models.results import CollectionStats
from .sequence import DEFAULT_COUNTER_KEY, SequenceGenerator

"""Collection statistics: record count, price analysis and ID tracking.

- price: missing / None price counts as 0. Numeric strings are parsed;
  anything else counts as 0 and is reported at debug level.
- last / next ID come from the current counter value and the configured
  prefix (the counter is read, never incremented).
"""

__all__ = [
    "PRICE_FIELD",
    "collection_stats",
    "price_values",
]

logger = logging.getLogger(__name__)

PRICE_FIELD = "price"


def _as_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        logger.debug("non-numeric price %r counted as 0", value)
        return 0.0


def price_values(records: Iterable[dict[str, Any]]) -> list[float]:
    return [_as_number(r.get(PRICE_FIELD)) for r in records]


def collection_stats(
    store: RecordStore,
    collection: str,
    id_prefix: str,
    counter_key: str = DEFAULT_COUNTER_KEY,
) -> CollectionStats:
    """Compute statistics for ``collection``.

    Raises:
        StoreError: propagated from the store
    """
    records = store.find_all(collection)
    sequence = SequenceGenerator(store, counter_key)
    last_id = sequence.last_id(id_prefix)
    next_id = sequence.peek_next_id(id_prefix)

    if not records:
        return CollectionStats(
            collection=collection,
            total=0,
            price_min=None,
            price_max=None,
            price_avg=None,
            last_id=last_id,
            next_id=next_id,
        )

    prices = price_values(records)
    return CollectionStats(
        collection=collection,
        total=len(records),
        price_min=min(prices),
        price_max=max(prices),
        price_avg=sum(prices) / len(prices),
        last_id=last_id,
        next_id=next_id,
    )
