from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .field_path import FieldPath, MappingError

"""ColumnMapping model (output field path -> Excel header).

The caller supplies a plain ``{"name.en": "Product Name EN"}`` dict per import.
``ColumnMapping.from_dict`` validates it once at the command boundary so that a
malformed mapping is reported before any file is read or any record written.
"""

__all__ = [
    "ColumnMapping",
]


@dataclass(frozen=True)
class ColumnMapping:
    """Validated, immutable column mapping.

    Entries keep the caller's insertion order; the mapping engine applies them
    in that order.
    """
    entries: tuple[tuple[FieldPath, str], ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> ColumnMapping:
        """Build a mapping from ``{field_path: excel_header}``.

        Raises:
            MappingError: non-string header, empty path segment, or a path that
                is both a value and a parent (``"name"`` with ``"name.en"``)
        """
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            raise MappingError(f"column mapping must be a mapping, got {type(raw).__name__}")

        entries: list[tuple[FieldPath, str]] = []
        for field, header in raw.items():
            path = FieldPath.parse(field)
            if not isinstance(header, str):
                raise MappingError(
                    f"header for field '{field}' must be a string, got {type(header).__name__}"
                )
            entries.append((path, header))

        paths = [p for p, _ in entries]
        for p in paths:
            for q in paths:
                if p.is_prefix_of(q):
                    raise MappingError(
                        f"field '{p}' conflicts with nested field '{q}'"
                    )
        return cls(tuple(entries))

    @property
    def headers(self) -> list[str]:
        return [h for _, h in self.entries]

    def to_dict(self) -> dict[str, str]:
        return {str(p): h for p, h in self.entries}

    def __iter__(self) -> Iterator[tuple[FieldPath, str]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)
