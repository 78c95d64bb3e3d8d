"""Domain services.

Pure services that operate on domain entities.
"""

from .mapping import ColumnMapper, MappedRow, ValueConversionError, ValueConverter
from .schema_merger import SchemaMergeError, SchemaMerger, validate_against_table
from .sniffing import detect_delimiter, detect_headers, is_numeric, sample_lines

__all__ = [
    "ColumnMapper",
    "MappedRow",
    "SchemaMergeError",
    "SchemaMerger",
    "ValueConversionError",
    "ValueConverter",
    "detect_delimiter",
    "detect_headers",
    "is_numeric",
    "sample_lines",
    "validate_against_table",
]
