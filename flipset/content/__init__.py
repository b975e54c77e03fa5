"""
Content exchange - JSON export and validated import of cards and categories.
"""

from .exchange import (
    EXPORT_VERSION,
    ConflictResolution,
    ContentExchange,
    ExportData,
    ImportResult,
    ImportValidationError,
    parse_export,
    read_export,
    write_export,
)

__all__ = [
    "EXPORT_VERSION",
    "ConflictResolution",
    "ContentExchange",
    "ExportData",
    "ImportResult",
    "ImportValidationError",
    "parse_export",
    "read_export",
    "write_export",
]
