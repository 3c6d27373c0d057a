from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from ..db.store import RecordStore
from ..models.column_mapping import ColumnMapping
from ..models.results import ImportOptions, IngestResult
from .mapper import map_row_data
from .progress import track_rows
from .sequence import DEFAULT_COUNTER_KEY, SequenceGenerator

"""Ingestion orchestration: rows -> mapped records -> store.

For one batch:
1. Validate the column mapping (MappingError before anything is written)
2. clear_existing: delete all records in the collection and, when IDs are
   generated, reset the counter to 0
3. Per row, in input order: map -> attach id -> attach timestamps
4. One store.insert_many() call for the whole batch

No transaction wraps the batch. A failure at any step propagates to the
caller unchanged; records already written (e.g. the clear) stay as they are.
"""

__all__ = [
    "ID_FIELD",
    "CREATED_AT_FIELD",
    "UPDATED_AT_FIELD",
    "build_records",
    "ingest",
]

logger = logging.getLogger(__name__)

ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_records(
    rows: Sequence[dict[str, Any]],
    mapping: ColumnMapping,
    options: ImportOptions,
    sequence: SequenceGenerator | None,
    now: Callable[[], datetime] = _utcnow,
) -> list[dict[str, Any]]:
    """Map rows and attach id / timestamps, strictly in input order.

    ``sequence`` is required when ``options.generate_id`` is True.
    """
    if options.generate_id and sequence is None:
        raise ValueError("generate_id requires a SequenceGenerator")

    records: list[dict[str, Any]] = []
    for row in track_rows(rows):
        record = dict(map_row_data(row, mapping))
        if options.generate_id:
            if ID_FIELD in record:
                logger.debug("mapped field '%s' replaced by generated id", ID_FIELD)
            record[ID_FIELD] = sequence.next_id(options.id_prefix)  # type: ignore[union-attr]
        if options.add_timestamps:
            ts = now()
            record[CREATED_AT_FIELD] = ts
            record[UPDATED_AT_FIELD] = ts
        records.append(record)
    return records


def ingest(
    rows: Sequence[dict[str, Any]],
    mapping: Mapping[str, str] | ColumnMapping | None,
    store: RecordStore,
    options: ImportOptions | None = None,
    *,
    collection: str,
    counter_key: str = DEFAULT_COUNTER_KEY,
    now: Callable[[], datetime] = _utcnow,
) -> IngestResult:
    """Import a batch of Excel rows into ``collection``.

    Args:
        rows: Excel rows (header -> value) in source order
        mapping: field path -> header. Empty/None keeps rows as they are
        store: durable store handle
        options: clear / id generation / prefix switches
        collection: destination collection (table for PostgreSQL)
        counter_key: counter used for ID generation
        now: timestamp source

    Returns:
        IngestResult with inserted count and generated IDs (row order)

    Raises:
        MappingError: malformed mapping (nothing written)
        StoreError: any store failure, propagated unchanged
    """
    options = options or ImportOptions()
    column_mapping = mapping if isinstance(mapping, ColumnMapping) else ColumnMapping.from_dict(mapping)
    sequence = SequenceGenerator(store, counter_key) if options.generate_id else None
    start = time.perf_counter()

    cleared = 0
    if options.clear_existing:
        cleared = store.delete_all(collection)
        logger.info(f"cleared collection={collection} deleted={cleared}")
        if sequence is not None:
            sequence.reset()

    records = build_records(rows, column_mapping, options, sequence, now)

    inserted = 0
    if records:
        inserted = store.insert_many(collection, records)
    generated_ids = [r[ID_FIELD] for r in records] if options.generate_id else []

    elapsed = time.perf_counter() - start
    logger.debug(
        "collection=%s rows=%d inserted=%d generate_id=%s elapsed=%.4fs",
        collection,
        len(rows),
        inserted,
        options.generate_id,
        elapsed,
    )
    return IngestResult(
        collection=collection,
        inserted_count=inserted,
        generated_ids=generated_ids,
        records=records,
        cleared_count=cleared,
        elapsed_seconds=elapsed,
    )
