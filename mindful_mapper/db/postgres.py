from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from functools import partial
from typing import Any

import psycopg2
import psycopg2.extras
from psycopg2.extras import Json

from .batch_insert import BatchMetrics, batch_insert, validate_table_name
from .errors import BatchInsertError, StoreQueryError, StoreUnavailableError

"""PostgreSQL RecordStore (psycopg2).

- Target tables must already exist; columns are the record keys (Excel
  headers or mapped field names). Nested values are stored as JSON.
- Counters live in a ``counters`` table (id TEXT PK, seq BIGINT), created on
  first counter access. Increment is a single INSERT .. ON CONFLICT .. RETURNING
  statement, so concurrent callers never observe the same value.
- Every operation commits on its own; a batch is not wrapped in a transaction
  spanning several operations.
"""

__all__ = [
    "PostgresStore",
]

logger = logging.getLogger(__name__)

_json_dumps = partial(json.dumps, default=str, ensure_ascii=False)


def _adapt_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return Json(value, dumps=_json_dumps)
    return value


class PostgresStore:
    """RecordStore backed by a single lazily-opened psycopg2 connection."""

    def __init__(self, dsn: str, *, counters_table: str = "counters", page_size: int = 1000) -> None:
        self.dsn = dsn
        self.counters_table = validate_table_name(counters_table)
        self.page_size = page_size
        self._conn: Any = None
        self._counters_ready = False

    @property
    def connection(self) -> Any:
        """Open the connection on first use and reuse it afterwards."""
        if self._conn is None or self._conn.closed:
            try:
                self._conn = psycopg2.connect(self.dsn)
            except psycopg2.Error as e:
                raise StoreUnavailableError(f"cannot connect to PostgreSQL: {e}") from e
            self._conn.autocommit = False
            self._counters_ready = False
        return self._conn

    @contextmanager
    def _cursor(self, cursor_factory: Any = None) -> Iterator[Any]:
        conn = self.connection
        try:
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
            conn.commit()
        except (psycopg2.Error, StoreQueryError) as e:
            self._rollback(conn)
            # rollback も CREATE TABLE を取り消すため再作成させる
            self._counters_ready = False
            if isinstance(e, StoreQueryError):
                raise
            if isinstance(e, (psycopg2.OperationalError, psycopg2.InterfaceError)):
                raise StoreUnavailableError(str(e)) from e
            raise StoreQueryError(str(e)) from e

    @staticmethod
    def _rollback(conn: Any) -> None:
        if conn.closed:
            return
        try:
            conn.rollback()
        except psycopg2.Error:  # pragma: no cover - connection already broken
            logger.debug("rollback failed", exc_info=True)

    def _ensure_counters(self, cur: Any) -> None:
        if self._counters_ready:
            return
        cur.execute(
            f"CREATE TABLE IF NOT EXISTS {self.counters_table} "
            "(id TEXT PRIMARY KEY, seq BIGINT NOT NULL DEFAULT 0)"
        )
        self._counters_ready = True

    def insert_many(self, collection: str, records: Sequence[dict[str, Any]]) -> int:
        if not records:
            return 0
        # 列集合 = 全レコードのキー和集合 (初出順)
        columns: list[str] = []
        for r in records:
            for k in r:
                if k not in columns:
                    columns.append(k)
        rows = [[_adapt_value(r.get(c)) for c in columns] for r in records]

        def _log_batch(metrics: BatchMetrics) -> None:
            logger.debug(
                "table=%s batch_size=%d elapsed=%.4fs",
                collection,
                metrics.batch_size,
                metrics.elapsed_seconds,
            )

        with self._cursor() as cur:
            result = batch_insert(
                cur,
                table=collection,
                columns=columns,
                rows=rows,
                page_size=self.page_size,
                metrics_callback=_log_batch,
            )
        return result.inserted_rows

    def increment_counter(self, key: str) -> int:
        with self._cursor() as cur:
            self._ensure_counters(cur)
            cur.execute(
                f"INSERT INTO {self.counters_table} AS c (id, seq) VALUES (%s, 1) "
                "ON CONFLICT (id) DO UPDATE SET seq = c.seq + 1 "
                "RETURNING seq",
                (key,),
            )
            row = cur.fetchone()
        return int(row[0])

    def set_counter(self, key: str, value: int) -> None:
        with self._cursor() as cur:
            self._ensure_counters(cur)
            cur.execute(
                f"INSERT INTO {self.counters_table} AS c (id, seq) VALUES (%s, %s) "
                "ON CONFLICT (id) DO UPDATE SET seq = EXCLUDED.seq",
                (key, value),
            )

    def get_counter(self, key: str) -> int | None:
        with self._cursor() as cur:
            self._ensure_counters(cur)
            cur.execute(f"SELECT seq FROM {self.counters_table} WHERE id = %s", (key,))
            row = cur.fetchone()
        return int(row[0]) if row else None

    def delete_all(self, collection: str) -> int:
        table = self._table(collection)
        with self._cursor() as cur:
            cur.execute(f"DELETE FROM {table}")
            return cur.rowcount

    def find_all(self, collection: str) -> list[dict[str, Any]]:
        table = self._table(collection)
        with self._cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(f"SELECT * FROM {table}")
            return [dict(r) for r in cur.fetchall()]

    @staticmethod
    def _table(collection: str) -> str:
        try:
            return validate_table_name(collection)
        except BatchInsertError as e:
            raise StoreQueryError(str(e)) from e

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
        self._conn = None
