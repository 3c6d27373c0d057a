from __future__ import annotations

from dataclasses import dataclass

"""FieldPath model for output field addressing.

An output field in a column mapping is written as a dotted string
(``"name.en"``). FieldPath keeps it as an ordered tuple of segments so that
nesting depth is explicit instead of being decided by ad hoc string splitting.

- ``parse()``: strict, used at the command boundary (raises MappingError)
- ``lenient()``: total, used by the mapping engine for raw dict mappings
"""

__all__ = [
    "FieldPath",
    "MappingError",
    "SEPARATOR",
]

SEPARATOR = "."


class MappingError(ValueError):
    """Raised when a column mapping is malformed (input error)."""


@dataclass(frozen=True)
class FieldPath:
    """Output field path as an ordered sequence of segments.

    ``FieldPath(("name", "en"))`` addresses ``record["name"]["en"]``.
    A single segment addresses a top-level field.
    """
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> FieldPath:
        """Parse a dotted path, rejecting empty segments.

        Raises:
            MappingError: if ``raw`` is not a string or contains an empty
                segment (``""``, ``".a"``, ``"a."``, ``"a..b"``)
        """
        if not isinstance(raw, str):
            raise MappingError(f"field path must be a string, got {type(raw).__name__}")
        segments = tuple(raw.split(SEPARATOR))
        if any(s == "" for s in segments):
            raise MappingError(f"invalid field path '{raw}': empty segment")
        return cls(segments)

    @classmethod
    def lenient(cls, raw: str) -> FieldPath:
        """Split without validation. Never raises for string input."""
        return cls(tuple(str(raw).split(SEPARATOR)))

    @property
    def depth(self) -> int:
        """Number of nesting levels below the top-level field (0 = flat)."""
        return len(self.segments) - 1

    @property
    def parent(self) -> tuple[str, ...]:
        return self.segments[:-1]

    @property
    def leaf(self) -> str:
        return self.segments[-1]

    def is_prefix_of(self, other: FieldPath) -> bool:
        n = len(self.segments)
        return n < len(other.segments) and other.segments[:n] == self.segments

    def __str__(self) -> str:
        return SEPARATOR.join(self.segments)
