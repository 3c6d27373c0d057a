from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pandas._libs.parsers as parsers

"""Excel reader.

read_rows(): 1枚目のシート (or a named sheet), first row = header labels,
following rows = data. Each row becomes ``{header: value}``:

- empty cells are omitted from the row (a missing header maps to None later)
- fully empty rows are skipped
- numpy / pandas scalars are converted to plain Python values
"""

__all__ = [
    "SourceFileNotFoundError",
    "SpreadsheetParseError",
    "read_rows",
]


class SourceFileNotFoundError(FileNotFoundError):
    """Raised when the Excel file path does not exist."""


class SpreadsheetParseError(Exception):
    """Raised when the file cannot be parsed as a workbook."""


def _to_python(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    # 欠損セルを含む整数列は float に昇格されるため戻す
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_empty(value: Any) -> bool:
    if isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def read_rows(
    path: Path | str,
    *,
    sheet: str | int | None = None,
    header_row: int = 0,
    keep_na_strings: list[str] | None = None,
) -> list[dict[str, Any]]:
    """Read a sheet into a list of ``{header: value}`` dicts in row order.

    Parameters
    ----------
    path: Excel ファイルパス
    sheet: sheet name or index (None -> first sheet)
    header_row: 0-based row holding the header labels
    keep_na_strings: strings to keep as text instead of pandas' default NaN
        conversion (e.g. ['NA', 'N/A'])

    Raises
    ------
    SourceFileNotFoundError: path does not exist
    SpreadsheetParseError: workbook cannot be read
    """
    path = Path(path)
    if not path.exists():
        raise SourceFileNotFoundError(f"File not found: {path}")

    if keep_na_strings:
        na_values = list(parsers.STR_NA_VALUES - set(keep_na_strings))
        keep_default_na = False
    else:
        na_values = None
        keep_default_na = True

    try:
        df = pd.read_excel(
            path,
            sheet_name=0 if sheet is None else sheet,
            header=header_row,
            keep_default_na=keep_default_na,
            na_values=na_values,
        )
    except Exception as e:  # pandas / openpyxl / zipfile errors for corrupt files
        raise SpreadsheetParseError(f"cannot parse {path.name}: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    rows: list[dict[str, Any]] = []
    for raw in df.itertuples(index=False, name=None):
        row = {
            col: _to_python(val)
            for col, val in zip(columns, raw, strict=False)
            if not _is_empty(val)
        }
        if row:
            rows.append(row)
    return rows
