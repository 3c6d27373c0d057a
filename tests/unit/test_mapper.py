from __future__ import annotations

import copy

import pytest

from mindful_mapper.models.column_mapping import ColumnMapping
from mindful_mapper.services.mapper import map_row_data, map_rows


def _key_paths(record: dict, parent: str = "") -> set[str]:
    paths: set[str] = set()
    for k, v in record.items():
        name = f"{parent}.{k}" if parent else k
        if isinstance(v, dict):
            paths |= _key_paths(v, name)
        else:
            paths.add(name)
    return paths


def test_identity_mapping_returns_row_unchanged():
    row = {"ID": 1, "Name": "Cookie"}
    result = map_row_data(row, {})
    assert result == row
    assert result is row


def test_identity_mapping_with_none():
    row = {"ID": 1, "meta": {"already": "nested"}}
    assert map_row_data(row, None) is row


def test_flat_mapping():
    row = {"Product ID": "123", "Price Tag": 99}
    mapping = {"id": "Product ID", "price": "Price Tag"}
    assert map_row_data(row, mapping) == {"id": "123", "price": 99}


def test_nested_mapping():
    row = {"Name EN": "Brownie", "Name FR": "Petit Gateau"}
    mapping = {"name.en": "Name EN", "name.fr": "Name FR"}
    assert map_row_data(row, mapping) == {"name": {"en": "Brownie", "fr": "Petit Gateau"}}


def test_mixed_mapping():
    row = {"SKU": "B01", "Description": "Sweet", "Category": "Dessert"}
    mapping = {"sku": "SKU", "info.desc": "Description", "info.cat": "Category"}
    assert map_row_data(row, mapping) == {
        "sku": "B01",
        "info": {"desc": "Sweet", "cat": "Dessert"},
    }


def test_projection_drops_unmapped_fields():
    row = {"SKU": "B01", "Internal Note": "do not export", "Price": 3}
    mapping = {"sku": "SKU", "pricing.amount": "Price"}
    result = map_row_data(row, mapping)
    assert _key_paths(result) == set(mapping)
    assert "Internal Note" not in result


def test_missing_header_yields_none():
    result = map_row_data({"SKU": "B01"}, {"sku": "SKU", "name.en": "Name EN"})
    assert result == {"sku": "B01", "name": {"en": None}}


@pytest.mark.parametrize(
    "row, mapping",
    [
        ({}, {}),
        ({}, {"sku": "SKU"}),
        ({"SKU": "B01"}, {"x": "Nope", "a.b": "Also Nope"}),
    ],
)
def test_never_raises(row, mapping):
    map_row_data(row, mapping)


def test_deep_path_nests_every_segment():
    row = {"Lang": "en", "Text": "Brownie"}
    result = map_row_data(row, {"i18n.name.en": "Text", "i18n.lang": "Lang"})
    assert result == {"i18n": {"name": {"en": "Brownie"}, "lang": "en"}}


def test_lenient_raw_mapping_collision_last_entry_wins():
    # "name" は後続の "name.en" により dict に置き換わる
    result = map_row_data({"A": 1, "B": 2}, {"name": "A", "name.en": "B"})
    assert result == {"name": {"en": 2}}


def test_lenient_raw_mapping_empty_segments_do_not_raise():
    result = map_row_data({"A": 1}, {"a..b": "A"})
    assert result == {"a": {"": {"b": 1}}}


def test_accepts_validated_column_mapping():
    mapping = ColumnMapping.from_dict({"sku": "SKU", "name.en": "Name EN"})
    result = map_row_data({"SKU": "B01", "Name EN": "Brownie"}, mapping)
    assert result == {"sku": "B01", "name": {"en": "Brownie"}}


def test_mapping_is_pure_and_repeatable():
    row = {"SKU": "B01", "Name EN": "Brownie"}
    mapping = {"sku": "SKU", "name.en": "Name EN"}
    before = copy.deepcopy(row)
    first = map_row_data(row, mapping)
    second = map_row_data(row, mapping)
    assert first == second
    assert first is not second
    assert row == before


def test_map_rows_preserves_order():
    rows = [{"SKU": s} for s in ("A", "B", "C")]
    assert [r["sku"] for r in map_rows(rows, {"sku": "SKU"})] == ["A", "B", "C"]
