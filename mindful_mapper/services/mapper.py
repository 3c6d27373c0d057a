from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.column_mapping import ColumnMapping
from ..models.field_path import FieldPath

"""Row mapping engine: Excel row (header -> value) to output record.

map_row_data() is a pure, total function. It never raises for a dict row and a
dict / ColumnMapping mapping; all validation happens earlier, in
ColumnMapping.from_dict() at the command boundary.
"""

__all__ = [
    "map_row_data",
    "map_rows",
]


def _entries(mapping: Mapping[str, str] | ColumnMapping) -> list[tuple[FieldPath, str]]:
    if isinstance(mapping, ColumnMapping):
        return list(mapping)
    return [(FieldPath.lenient(field), header) for field, header in mapping.items()]


def map_row_data(
    row: dict[str, Any],
    mapping: Mapping[str, str] | ColumnMapping | None = None,
) -> dict[str, Any]:
    """Map one Excel row to a (possibly nested) record.

    - Empty / None mapping: ``row`` is returned unchanged (same object).
    - Otherwise a new dict containing only the mapped fields (projection).
    - A header missing from ``row`` yields ``None`` for that field.
    - ``"name.en"`` nests as ``{"name": {"en": value}}``; paths sharing a
      parent merge into the same dict. Deeper paths nest further.

    Args:
        row: Header label -> cell value
        mapping: Output field path -> header label

    Returns:
        Mapped record

    Examples:
        >>> map_row_data({"Name EN": "Brownie", "SKU": "B01"}, {"sku": "SKU", "name.en": "Name EN"})
        {'sku': 'B01', 'name': {'en': 'Brownie'}}
    """
    if not mapping:
        return row

    record: dict[str, Any] = {}
    for path, header in _entries(mapping):
        value = row.get(header)
        node = record
        for segment in path.parent:
            child = node.get(segment)
            if not isinstance(child, dict):
                # 後勝ち: a scalar at a parent position is replaced
                child = {}
                node[segment] = child
            node = child
        node[path.leaf] = value
    return record


def map_rows(
    rows: list[dict[str, Any]],
    mapping: Mapping[str, str] | ColumnMapping | None = None,
) -> list[dict[str, Any]]:
    """Apply map_row_data to every row, preserving order."""
    return [map_row_data(r, mapping) for r in rows]
