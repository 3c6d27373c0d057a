from __future__ import annotations

import json
from unittest.mock import MagicMock

import pandas as pd

from mindful_mapper.config.loader import DatabaseConfig, MapperConfig
from mindful_mapper.db.errors import StoreUnavailableError
from mindful_mapper.db.memory import InMemoryStore
from mindful_mapper.services.commands import CommandContext, export_excel, import_excel, view_stats

MAPPING = {"sku": "SKU", "name.en": "Name EN", "name.fr": "Name FR", "price": "Price Tag"}


def test_import_success(ctx, memory_store, product_workbook):
    result = import_excel(ctx, product_workbook, column_mapping=MAPPING)

    assert result.ok is True
    assert result.message == (
        "Successfully imported 3 items into collection: items!\n"
        "Generated IDs: spb-0001, spb-0002, spb-0003"
    )
    assert result.data["collection"] == "items"
    assert result.data["inserted_count"] == 3
    assert result.data["generated_ids"] == ["spb-0001", "spb-0002", "spb-0003"]

    stored = memory_store.find_all("items")
    assert stored[0]["name"] == {"en": "Brownie", "fr": "Petit Gateau"}
    assert stored[0]["price"] == 4.5
    assert "createdAt" in stored[0]


def test_import_options_are_forwarded(ctx, memory_store, product_workbook):
    result = import_excel(
        ctx,
        str(product_workbook),
        collection="cakes",
        generate_id=True,
        id_prefix="cake",
        add_timestamps=False,
    )
    assert result.data["generated_ids"][0] == "cake-0001"
    record = memory_store.find_all("cakes")[0]
    assert record["SKU"] == "B01"
    assert "createdAt" not in record


def test_import_clear_existing(ctx, memory_store, product_workbook):
    import_excel(ctx, product_workbook, column_mapping=MAPPING)
    result = import_excel(ctx, product_workbook, column_mapping=MAPPING, clear_existing=True)
    assert result.data["cleared_count"] == 3
    assert result.data["generated_ids"][0] == "spb-0001"
    assert len(memory_store.find_all("items")) == 3


def test_import_missing_file(ctx, memory_store, tmp_path):
    missing = tmp_path / "nope.xlsx"
    result = import_excel(ctx, missing, column_mapping=MAPPING, clear_existing=True)

    assert result.ok is False
    assert result.message == f"Error: File not found: {missing}"
    assert result.data["error_type"] == "FILE_NOT_FOUND"
    assert memory_store.get_counter("item_id") is None


def test_import_non_path_argument_is_reported(ctx):
    result = import_excel(ctx, 42)  # type: ignore[arg-type]
    assert result.ok is False
    assert result.message.startswith("Error: ")
    assert result.data["error_type"] == "UNEXPECTED_ERROR"


def test_import_malformed_mapping_writes_nothing(ctx, memory_store, product_workbook):
    memory_store.insert_many("items", [{"keep": True}])
    result = import_excel(ctx, product_workbook, column_mapping={"name..en": "Name EN"}, clear_existing=True)

    assert result.ok is False
    assert result.message.startswith("Error: ")
    assert result.data["error_type"] == "MAPPING_ERROR"
    assert memory_store.find_all("items") == [{"keep": True}]


def test_import_store_unavailable(memory_config, product_workbook):
    store = MagicMock(spec=InMemoryStore)
    store.increment_counter.side_effect = StoreUnavailableError("connection refused")
    ctx = CommandContext.create(memory_config, store)

    result = import_excel(ctx, product_workbook)

    assert result.ok is False
    assert result.message == "Error: connection refused"
    assert result.data["error_type"] == "STORE_UNAVAILABLE"
    store.insert_many.assert_not_called()


def test_failure_is_written_to_error_log(tmp_path, memory_store):
    cfg = MapperConfig(database=DatabaseConfig(backend="memory"), error_log_dir=str(tmp_path / "logs"))
    ctx = CommandContext.create(cfg, memory_store)

    import_excel(ctx, tmp_path / "nope.xlsx")

    files = list((tmp_path / "logs").glob("errors-*.log"))
    assert len(files) == 1
    rec = json.loads(files[0].read_text(encoding="utf-8").strip())
    assert rec["command"] == "import"
    assert rec["error_type"] == "FILE_NOT_FOUND"
    assert rec["target"].endswith("nope.xlsx")


def test_no_error_log_by_default(ctx):
    assert ctx.error_log is None


def test_export_success(ctx, memory_store, tmp_path):
    memory_store.insert_many("items", [{"id": "spb-0001", "name": {"en": "Brownie"}}])
    out = tmp_path / "export.xlsx"

    result = export_excel(ctx, out)

    assert result.ok is True
    assert result.message == f"Successfully exported 1 items from collection: items to file: {out}"
    assert result.data["exported_count"] == 1
    df = pd.read_excel(out)
    assert list(df.columns) == ["id", "name.en"]


def test_export_store_failure(memory_config, tmp_path):
    store = MagicMock(spec=InMemoryStore)
    store.find_all.side_effect = StoreUnavailableError("no servers available")
    ctx = CommandContext.create(memory_config, store)
    out = tmp_path / "export.xlsx"

    result = export_excel(ctx, out)

    assert result.ok is False
    assert result.message == "Error: no servers available"
    assert not out.exists()


def test_stats_success(ctx, memory_store):
    memory_store.insert_many("items", [{"price": 10}, {"price": 20}])
    memory_store.set_counter("item_id", 2)

    result = view_stats(ctx)

    assert result.ok is True
    assert "Total Items: 2" in result.message
    assert result.data["total"] == 2
    assert result.data["next_id"] == "spb-0003"


def test_stats_empty(ctx):
    result = view_stats(ctx, collection="empty")
    assert result.ok is True
    assert result.message == "No data found in collection: empty"


def test_unexpected_error_is_reported(memory_config):
    store = MagicMock(spec=InMemoryStore)
    store.find_all.side_effect = RuntimeError("boom")
    result = view_stats(CommandContext.create(memory_config, store))
    assert result.ok is False
    assert result.message == "Error: boom"
    assert result.data["error_type"] == "UNEXPECTED_ERROR"
