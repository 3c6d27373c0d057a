from __future__ import annotations

import pytest

from mindful_mapper.db.batch_insert import (
    InsertResult,
    batch_insert,
    quote_identifier,
    validate_table_name,
)
from mindful_mapper.db.errors import BatchInsertError, StoreQueryError


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list = []


# execute_values をモジュール内で差し替え、実 DB なしでロジックを確認する
@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import mindful_mapper.db.batch_insert as bi

    def fake_execute_values(cursor, sql, rows, page_size=1000, template=None):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(cur, table="items", columns=["sku", "Price Tag"], rows=[["A", 1], ["B", 2]])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert cur.queries == ['INSERT INTO items ("sku","Price Tag") VALUES %s']
    assert cur.rows == [["A", 1], ["B", 2]]


def test_batch_insert_empty_rows():
    cur = DummyCursor()
    res = batch_insert(cur, table="items", columns=["sku"], rows=[])
    assert res.inserted_rows == 0
    assert cur.queries == []


def test_batch_insert_with_metrics_callback():
    cur = DummyCursor()
    captured = []
    batch_insert(cur, table="items", columns=["sku"], rows=[["A"], ["B"]], metrics_callback=captured.append)
    assert len(captured) == 1
    assert captured[0].batch_size == 2
    assert captured[0].elapsed_seconds >= 0


def test_batch_insert_wraps_driver_error(monkeypatch):
    import mindful_mapper.db.batch_insert as bi

    def boom(*args, **kwargs):
        raise RuntimeError('relation "items" does not exist')

    monkeypatch.setattr(bi, "execute_values", boom)
    with pytest.raises(BatchInsertError, match='relation "items" does not exist') as e:
        batch_insert(DummyCursor(), table="items", columns=["sku"], rows=[["A"]])
    assert isinstance(e.value, StoreQueryError)


def test_batch_insert_lets_connection_errors_through(monkeypatch):
    import psycopg2

    import mindful_mapper.db.batch_insert as bi

    def lost(*args, **kwargs):
        raise psycopg2.InterfaceError("connection already closed")

    monkeypatch.setattr(bi, "execute_values", lost)
    with pytest.raises(psycopg2.InterfaceError):
        batch_insert(DummyCursor(), table="items", columns=["sku"], rows=[["A"]])


@pytest.mark.parametrize("table", ["items; DROP TABLE x", "1items", "my-table", ""])
def test_invalid_table_name_rejected(table):
    with pytest.raises(BatchInsertError, match="invalid table name"):
        batch_insert(DummyCursor(), table=table, columns=["sku"], rows=[["A"]])


def test_schema_qualified_table_allowed():
    assert validate_table_name("public.items") == "public.items"


def test_quote_identifier_escapes_quotes():
    assert quote_identifier('Name "EN"') == '"Name ""EN"""'
