"""Workbook decoding through pandas (openpyxl engine).

Cell values are rendered to text when read; typing is left to the column
mapper. Workbooks need random access, so the whole byte stream is read
into memory before decoding.
"""

from __future__ import annotations

import io
from datetime import datetime, time
from typing import TYPE_CHECKING

import pandas as pd

from .delimited import RawRecord
from .exceptions import DataParseError, DataSourceIOError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import BinaryIO


def open_workbook(handle: BinaryIO, *, identifier: str) -> pd.ExcelFile:
    try:
        data = handle.read()
    except OSError as e:
        raise DataSourceIOError(f"Failed to read {identifier}: {e}") from e
    try:
        return pd.ExcelFile(io.BytesIO(data))
    except Exception as e:
        raise DataParseError(f"Failed to open workbook {identifier}: {e}") from e


def sheet_names(workbook: pd.ExcelFile) -> list[str]:
    return [str(name) for name in workbook.sheet_names]


def resolve_sheet(workbook: pd.ExcelFile, requested: str | None, *, identifier: str) -> str:
    """Return the requested sheet, or the first one when none is requested."""
    names = sheet_names(workbook)
    if not names:
        raise DataParseError(f"Workbook {identifier} contains no sheets")
    if requested is None:
        return names[0]
    if requested not in names:
        raise DataParseError(
            f"Sheet '{requested}' not found in {identifier}; available: {', '.join(names)}"
        )
    return requested


def _render(value: object) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time():
            return value.strftime("%Y-%m-%d")
        return value.isoformat(sep=" ")
    return str(value)


def sheet_records(
    workbook: pd.ExcelFile, sheet: str, *, identifier: str
) -> Iterator[RawRecord]:
    """Yield the non-empty rows of ``sheet`` as text records."""
    try:
        frame = workbook.parse(sheet, header=None, dtype=object)
    except Exception as e:
        raise DataParseError(f"Failed to read sheet '{sheet}' of {identifier}: {e}") from e
    index = 0
    for values in frame.itertuples(index=False, name=None):
        rendered = [_render(value) for value in values]
        if not any(rendered):
            continue
        yield RawRecord(index=index, values=rendered)
        index += 1
