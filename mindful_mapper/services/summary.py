from __future__ import annotations

from pathlib import Path

from ..models.results import CollectionStats, IngestResult

"""Message rendering for command results.

The texts are the human-readable part of every CommandResult and the SUMMARY
line printed by the CLI. Failure messages always carry the underlying cause.
"""

__all__ = [
    "format_number",
    "render_error_message",
    "render_export_message",
    "render_import_message",
    "render_stats_message",
]


def format_number(value: float) -> str:
    """Render integers without a trailing ``.0``; scientific notation only below 1e-6.

    >>> format_number(99.0), format_number(0.5), format_number(0)
    ('99', '0.5', '0')
    """
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        text = f"{value:.6f}".rstrip("0").rstrip(".")
        if text in ("0", "-0"):
            return f"{value:g}"
        return text
    return str(value)


def render_import_message(result: IngestResult) -> str:
    """
    Examples:
        >>> r = IngestResult(collection="items", inserted_count=2, generated_ids=["spb-0001", "spb-0002"])
        >>> print(render_import_message(r))
        Successfully imported 2 items into collection: items!
        Generated IDs: spb-0001, spb-0002
    """
    message = f"Successfully imported {result.inserted_count} items into collection: {result.collection}!"
    if result.generated_ids:
        message += "\nGenerated IDs: " + ", ".join(result.generated_ids)
    return message


def render_export_message(count: int, collection: str, output_path: Path | str) -> str:
    return f"Successfully exported {count} items from collection: {collection} to file: {output_path}"


def render_stats_message(stats: CollectionStats) -> str:
    if stats.total == 0:
        return f"No data found in collection: {stats.collection}"
    avg = f"{stats.price_avg:.2f}" if stats.price_avg is not None else "0.00"
    lines = [
        f"Collection Stats: {stats.collection}",
        "",
        f"Total Items: {stats.total}",
        "",
        "Price Analysis:",
        f"- Min: {format_number(stats.price_min or 0)}",
        f"- Max: {format_number(stats.price_max or 0)}",
        f"- Avg: {avg}",
        "",
        "ID System:",
        f"- Last ID: {stats.last_id or 'None'}",
        f"- Next ID: {stats.next_id}",
    ]
    return "\n".join(lines)


def render_error_message(exc: BaseException) -> str:
    """``Error: <cause>``; the cause text is the exception message (or its type)."""
    cause = str(exc) or type(exc).__name__
    return f"Error: {cause}"
