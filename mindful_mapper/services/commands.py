from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from pathlib import Path

from ..config.loader import MapperConfig
from ..db.errors import StoreError, StoreUnavailableError
from ..db.store import RecordStore
from ..excel.reader import SourceFileNotFoundError, SpreadsheetParseError, read_rows
from ..excel.writer import write_records
from ..logging.error_log import ErrorLog, ErrorRecord
from ..models.column_mapping import ColumnMapping
from ..models.field_path import MappingError
from ..models.results import CommandResult, ImportOptions
from .orchestrator import ingest
from .stats import collection_stats
from .summary import (
    render_error_message,
    render_export_message,
    render_import_message,
    render_stats_message,
)

"""Command surface: import / export / stats.

Every command returns a CommandResult and never raises. Errors are caught
here, logged, optionally appended to the JSON Lines error log, and turned into
``CommandResult(ok=False, message="Error: <cause>")``.

Input errors (missing file, malformed mapping) are detected before any store
operation is attempted.
"""

__all__ = [
    "CommandContext",
    "export_excel",
    "import_excel",
    "view_stats",
]

logger = logging.getLogger(__name__)


@dataclass
class CommandContext:
    """Shared state for commands: config and the process-wide store handle."""
    config: MapperConfig
    store: RecordStore
    error_log: ErrorLog | None = None

    @classmethod
    def create(cls, config: MapperConfig, store: RecordStore) -> CommandContext:
        error_log = ErrorLog(config.error_log_dir) if config.error_log_dir else None
        return cls(config=config, store=store, error_log=error_log)


def _error_type(exc: BaseException) -> str:
    if isinstance(exc, SourceFileNotFoundError):
        return "FILE_NOT_FOUND"
    if isinstance(exc, SpreadsheetParseError):
        return "SPREADSHEET_PARSE_ERROR"
    if isinstance(exc, MappingError):
        return "MAPPING_ERROR"
    if isinstance(exc, StoreUnavailableError):
        return "STORE_UNAVAILABLE"
    if isinstance(exc, StoreError):
        return "STORE_ERROR"
    return "UNEXPECTED_ERROR"


def _fail(ctx: CommandContext, command: str, target: str, exc: Exception) -> CommandResult:
    error_type = _error_type(exc)
    message = render_error_message(exc)
    if error_type == "UNEXPECTED_ERROR":
        logger.error(f"{command}: {message}", exc_info=exc)
    else:
        logger.error(f"{command}: {message}")
    if ctx.error_log is not None:
        try:
            ctx.error_log.write(ErrorRecord.create(command, target, error_type, str(exc)))
        except OSError as e:
            logger.warning(f"error log write failed: {e}")
    return CommandResult.failure(message, error_type=error_type)


def import_excel(
    ctx: CommandContext,
    file_path: str | Path,
    collection: str | None = None,
    column_mapping: Mapping[str, str] | None = None,
    clear_existing: bool = False,
    generate_id: bool = True,
    id_prefix: str | None = None,
    add_timestamps: bool = True,
) -> CommandResult:
    """Import an Excel file into ``collection`` with optional mapping and IDs."""
    cfg = ctx.config
    collection = collection or cfg.default_collection
    try:
        path = Path(file_path)
        if not path.exists():
            raise SourceFileNotFoundError(f"File not found: {path}")
        mapping = ColumnMapping.from_dict(column_mapping)
        rows = read_rows(path, keep_na_strings=cfg.keep_na_strings)
        logger.info(f"read {len(rows)} rows from {path.name}")
        options = ImportOptions(
            clear_existing=clear_existing,
            generate_id=generate_id,
            id_prefix=id_prefix or cfg.id_prefix,
            add_timestamps=add_timestamps,
        )
        result = ingest(
            rows,
            mapping,
            ctx.store,
            options,
            collection=collection,
            counter_key=cfg.counter_key,
        )
    except Exception as e:
        return _fail(ctx, "import", str(file_path), e)

    return CommandResult.success(
        render_import_message(result),
        collection=collection,
        inserted_count=result.inserted_count,
        generated_ids=result.generated_ids,
        cleared_count=result.cleared_count,
    )


def export_excel(
    ctx: CommandContext,
    output_path: str | Path,
    collection: str | None = None,
) -> CommandResult:
    """Export every record of ``collection`` to an Excel file."""
    collection = collection or ctx.config.default_collection
    try:
        records = ctx.store.find_all(collection)
        count = write_records(records, output_path)
    except Exception as e:
        return _fail(ctx, "export", collection, e)

    return CommandResult.success(
        render_export_message(count, collection, output_path),
        collection=collection,
        exported_count=count,
        output_path=str(output_path),
    )


def view_stats(ctx: CommandContext, collection: str | None = None) -> CommandResult:
    """Record count, price analysis and ID tracking for ``collection``."""
    cfg = ctx.config
    collection = collection or cfg.default_collection
    try:
        stats = collection_stats(ctx.store, collection, cfg.id_prefix, cfg.counter_key)
    except Exception as e:
        return _fail(ctx, "stats", collection, e)

    return CommandResult.success(render_stats_message(stats), **asdict(stats))
