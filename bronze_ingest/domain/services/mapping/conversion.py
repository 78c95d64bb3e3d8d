"""Typed conversion of raw cell text.

The target column's name decides which conversions are attempted; the raw
text is never inspected to guess a type.
"""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import TypeAlias

from ....constants import BooleanLiterals, DateLayouts, NumericFormatting
from ...entities.schema import ColumnType
from .utils import is_boolean_name, is_numeric_name, is_temporal_name

CellValue: TypeAlias = str | float | bool | datetime | None


class ValueConversionError(ValueError):
    """Raised when every typed conversion suggested by a column name fails."""

    def __init__(self, value: str, column: str, attempted: tuple[ColumnType, ...]):
        kinds = ", ".join(kind.value for kind in attempted)
        super().__init__(f"Cannot convert {value!r} for column '{column}' ({kinds})")
        self.value = value
        self.column = column
        self.attempted = attempted


@lru_cache(maxsize=1024)
def conversion_intents(column: str) -> tuple[ColumnType, ...]:
    """Typed conversions to attempt for ``column``, in attempt order."""
    intents: list[ColumnType] = []
    if is_temporal_name(column):
        intents.append(ColumnType.TEMPORAL)
    if is_numeric_name(column):
        intents.append(ColumnType.NUMERIC)
    if is_boolean_name(column):
        intents.append(ColumnType.BOOLEAN)
    return tuple(intents)


def parse_temporal(value: str) -> datetime | None:
    for layout in DateLayouts.ORDERED:
        try:
            return datetime.strptime(value, layout)
        except ValueError:
            continue
    return None


def parse_numeric(value: str) -> float | None:
    cleaned = "".join(char for char in value if char in NumericFormatting.KEEP_CHARS)
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_boolean(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in BooleanLiterals.TRUE:
        return True
    if lowered in BooleanLiterals.FALSE:
        return False
    return None


_PARSERS = {
    ColumnType.TEMPORAL: parse_temporal,
    ColumnType.NUMERIC: parse_numeric,
    ColumnType.BOOLEAN: parse_boolean,
}


class ValueConverter:
    """Convert raw cell text into a typed value for a target column.

    Example:
        >>> converter = ValueConverter()
        >>> converter.convert("$1,250.50", "total_amount")
        1250.5
        >>> converter.convert("yes", "is_active")
        True
    """

    def convert(self, value: str | None, column: str) -> CellValue:
        """Convert ``value`` for ``column``.

        Empty text converts to ``None`` without error. Text for a column
        with no typed hint is returned unchanged.

        Raises:
            ValueConversionError: If the column has typed hints and none of
                the attempted conversions succeeds.
        """
        if value is None or value == "":
            return None
        intents = conversion_intents(column)
        if not intents:
            return value
        for intent in intents:
            converted = _PARSERS[intent](value)
            if converted is not None:
                return converted
        raise ValueConversionError(value, column, intents)
