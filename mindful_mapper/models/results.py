from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Processing result models for the import / export / stats commands.

ImportOptions: per-import switches (clear, id generation, prefix)
IngestResult: what the orchestrator persisted
CollectionStats: aggregated view of a collection and its ID counter
CommandResult: structured success / failure payload returned by every command
"""

DEFAULT_ID_PREFIX = "spb"


@dataclass(frozen=True)
class ImportOptions:
    """Switches for a single import batch."""
    clear_existing: bool = False  # empty the collection (and reset counter) first
    generate_id: bool = True  # attach a fresh sequential id to each record
    id_prefix: str = DEFAULT_ID_PREFIX
    add_timestamps: bool = True  # createdAt / updatedAt


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one ingest() call."""
    collection: str
    inserted_count: int
    generated_ids: list[str] = field(default_factory=list)
    records: list[dict[str, Any]] = field(default_factory=list)
    cleared_count: int = 0  # records deleted by clear_existing
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class CollectionStats:
    """Statistics for a collection (price analysis + ID tracking).

    ``price_*`` fields are None for an empty collection.
    """
    collection: str
    total: int
    price_min: float | None
    price_max: float | None
    price_avg: float | None
    last_id: str | None  # None when the counter was never used
    next_id: str


@dataclass(frozen=True)
class CommandResult:
    """Structured command outcome. ``ok`` distinguishes success from failure."""
    ok: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, message: str, **data: Any) -> CommandResult:
        return cls(ok=True, message=message, data=data)

    @classmethod
    def failure(cls, message: str, **data: Any) -> CommandResult:
        return cls(ok=False, message=message, data=data)
