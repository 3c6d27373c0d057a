"""Domain models for the Excel mapping / import tool.

This package contains the value types shared by the mapping engine, the
sequence generator and the ingestion orchestrator.
"""

from .column_mapping import ColumnMapping
from .field_path import FieldPath, MappingError
from .results import CollectionStats, CommandResult, ImportOptions, IngestResult

__all__ = [
    # Mapping models
    "ColumnMapping",
    "FieldPath",
    "MappingError",
    # Processing models
    "ImportOptions",
    "IngestResult",
    "CollectionStats",
    "CommandResult",
]
