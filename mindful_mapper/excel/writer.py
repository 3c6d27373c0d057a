from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

"""Excel writer for collection export.

One record per row on a single sheet. Nested dicts (``{"name": {"en": ..}}``)
are flattened back to dotted column names (``name.en``), the inverse of the
import mapping. Excel cannot store timezone-aware datetimes, so they are
written as naive UTC. MongoDB's ``_id`` is dropped.
"""

__all__ = [
    "DEFAULT_SHEET_NAME",
    "flatten_record",
    "write_records",
]

DEFAULT_SHEET_NAME = "Data"
EXCLUDED_FIELDS = frozenset({"_id"})


def _excel_value(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return value


def flatten_record(record: Mapping[str, Any], parent: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys.

    >>> flatten_record({"sku": "B01", "info": {"desc": "Sweet"}})
    {'sku': 'B01', 'info.desc': 'Sweet'}
    """
    flat: dict[str, Any] = {}
    for key, value in record.items():
        if not parent and key in EXCLUDED_FIELDS:
            continue
        name = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_record(value, name))
        else:
            flat[name] = _excel_value(value)
    return flat


def write_records(
    records: Sequence[Mapping[str, Any]],
    path: Path | str,
    *,
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> int:
    """Write records to ``path`` (.xlsx) and return the number of rows written.

    Column order follows first appearance across records. Parent directories
    are created when missing.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    flat = [flatten_record(r) for r in records]
    df = pd.DataFrame(flat)
    df.to_excel(path, sheet_name=sheet_name, index=False, engine="openpyxl")
    return len(flat)
