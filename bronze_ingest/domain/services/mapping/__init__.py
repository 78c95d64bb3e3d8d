"""Column mapping services.

Maps one file's source columns onto a target column list using exact,
cleaned-name and bounded edit-distance matching, and converts raw cell text
to typed values driven by keywords in the target column name.
"""

from .conversion import CellValue, ValueConversionError, ValueConverter
from .engine import ColumnMapper, MappedRow
from .utils import clean_column_name, infer_column_type

__all__ = [
    "CellValue",
    "ColumnMapper",
    "MappedRow",
    "ValueConversionError",
    "ValueConverter",
    "clean_column_name",
    "infer_column_type",
]
