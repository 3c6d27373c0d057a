from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from .errors import BatchInsertError

"""PostgreSQL batch INSERT helper.

psycopg2.extras.execute_values でまとめて INSERT する。呼び出し側 (PostgresStore)
が列集合を決定し、値は適合済み (dict -> Json) の前提。

The metrics callback receives timing for the execute_values call so the store
can log batch throughput at debug level.
"""

__all__ = [
    "BatchMetrics",
    "InsertResult",
    "batch_insert",
    "quote_identifier",
    "validate_table_name",
]

_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for a single batch insert."""
    batch_size: int
    elapsed_seconds: float  # execute_values only


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def validate_table_name(table: str) -> str:
    """Return ``table`` if it is a plain (optionally schema-qualified) identifier.

    Raises:
        BatchInsertError: for anything else (table names are interpolated into SQL)
    """
    if not isinstance(table, str) or not _TABLE_RE.match(table):
        raise BatchInsertError(
            f"invalid table name '{table}': only letters, digits and underscores are allowed"
        )
    return table


def quote_identifier(name: str) -> str:
    """Double-quote a column name (Excel headers may contain spaces)."""
    return '"' + str(name).replace('"', '""') + '"'


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: 対象テーブル名 (validate_table_name で検証)
    columns: 挿入列 (順序は rows の値順と一致)
    rows: 行シーケンス
    page_size: execute_values の page_size
    metrics_callback: Optional callback receiving BatchMetrics. Not invoked when
        ``rows`` is empty (the function returns early).
    """
    validate_table_name(table)
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)
    if not columns:
        raise BatchInsertError(f"no columns to insert into {table}")

    cols_sql = ",".join(quote_identifier(c) for c in columns)
    base_sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"

    started = time.perf_counter()
    try:
        execute_values(cursor, base_sql, rows_list, page_size=page_size)
    except (psycopg2.OperationalError, psycopg2.InterfaceError):
        # 接続断はそのまま上位 (PostgresStore._cursor) へ
        raise
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        if metrics_callback is not None:
            metrics_callback(BatchMetrics(len(rows_list), time.perf_counter() - started))

    return InsertResult(inserted_rows=len(rows_list))
