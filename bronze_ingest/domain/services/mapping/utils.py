import re

from ....constants import ColumnKeywords, ColumnNameAffixes
from ...entities.schema import ColumnType

_SEPARATOR_RE = re.compile(r"[\s\-]+")
_TRAILING_DIGITS_RE = re.compile(r"\d+$")
_NON_ALNUM_RE = re.compile(r"[^0-9a-z]")


def normalize_text(text: str) -> str:
    return _SEPARATOR_RE.sub("_", text.strip().lower())


def clean_column_name(name: str) -> str:
    """Lowercase ``name`` and drop one known prefix, one known suffix and
    any trailing digits."""
    cleaned = normalize_text(name)
    for prefix in ColumnNameAffixes.PREFIXES:
        if cleaned.startswith(prefix):
            cleaned = cleaned.removeprefix(prefix)
            break
    for suffix in ColumnNameAffixes.SUFFIXES:
        if cleaned.endswith(suffix):
            cleaned = cleaned.removesuffix(suffix)
            break
    cleaned = _TRAILING_DIGITS_RE.sub("", cleaned)
    return cleaned.strip("_")


def merge_key(name: str) -> str:
    return _NON_ALNUM_RE.sub("", name.casefold())


def _has_keyword(name: str, keywords: tuple[str, ...]) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


def is_temporal_name(name: str) -> bool:
    return _has_keyword(name, ColumnKeywords.TEMPORAL)


def is_numeric_name(name: str) -> bool:
    return _has_keyword(name, ColumnKeywords.NUMERIC)


def is_boolean_name(name: str) -> bool:
    return _has_keyword(name, ColumnKeywords.BOOLEAN)


def infer_column_type(name: str) -> ColumnType:
    """Infer a column's type from keywords in its name.

    Numeric hints are checked first, then temporal, then boolean; names
    with only text hints, or none, are text.
    """
    if is_numeric_name(name):
        return ColumnType.NUMERIC
    if is_temporal_name(name):
        return ColumnType.TEMPORAL
    if is_boolean_name(name):
        return ColumnType.BOOLEAN
    return ColumnType.TEXT
