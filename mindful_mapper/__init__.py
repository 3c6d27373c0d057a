"""Excel -> MongoDB / PostgreSQL import tool with column mapping and sequential IDs."""

__version__ = "1.0.0"
