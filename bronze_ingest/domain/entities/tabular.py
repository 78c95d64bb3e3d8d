"""Tabular source and parse result entities.

These records are request-scoped: a source is described, parsed into a page
(bounded mode) or a sequence of stream events (streaming mode), and then
discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, TypeAlias

import pandas as pd

from ...constants import FileExtensions

if TYPE_CHECKING:
    from collections.abc import Sequence


class SourceFormat(str, Enum):
    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"

    @property
    def tag(self) -> str:
        """Short format tag used in responses (``csv`` / ``excel``)."""
        return "csv" if self is SourceFormat.DELIMITED else "excel"


def _empty_failures() -> list[ParseFailure]:
    return []


def _empty_rows() -> list[list[str]]:
    return []


def _empty_str_list() -> list[str]:
    return []


def _empty_int_list() -> list[int]:
    return []


@dataclass(frozen=True, slots=True)
class TabularSource:
    """An identified, fetchable blob of tabular data prior to parsing."""

    identifier: str
    byte_length: int | None
    format: SourceFormat
    sheet_name: str | None = None

    @property
    def name(self) -> str:
        return PurePosixPath(self.identifier).name

    @classmethod
    def describe(
        cls,
        identifier: str,
        *,
        byte_length: int | None = None,
        sheet_name: str | None = None,
        force_delimited: bool = False,
    ) -> TabularSource:
        """Build a source, suspecting its format from the identifier.

        Raises:
            ValueError: If the extension is not a known tabular format and
                ``force_delimited`` is not set.
        """
        fmt = detect_format(identifier, force_delimited=force_delimited)
        if fmt is None:
            suffix = PurePosixPath(identifier).suffix.lower() or "<none>"
            raise ValueError(
                f"Unsupported file type '{suffix}'; set force-delimited to read it as CSV"
            )
        return cls(
            identifier=identifier,
            byte_length=byte_length,
            format=fmt,
            sheet_name=sheet_name or None,
        )


def detect_format(identifier: str, *, force_delimited: bool = False) -> SourceFormat | None:
    if force_delimited:
        return SourceFormat.DELIMITED
    suffix = PurePosixPath(identifier).suffix.lower()
    if suffix in FileExtensions.DELIMITED:
        return SourceFormat.DELIMITED
    if suffix in FileExtensions.SPREADSHEET:
        return SourceFormat.SPREADSHEET
    return None


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Windowing and header options shared by bounded and streaming reads.

    ``max_rows=None`` reads every data row after ``offset``.
    """

    max_rows: int | None = None
    offset: int = 0
    assume_headers: bool = False
    auto_detect_headers: bool = False
    force_delimited: bool = False
    chunk_size: int = 1000

    def __post_init__(self) -> None:
        if self.max_rows is not None and self.max_rows < 0:
            raise ValueError(f"max_rows must not be negative, got {self.max_rows}")
        if self.offset < 0:
            raise ValueError(f"offset must not be negative, got {self.offset}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """A raw record the delimited parser could not split."""

    row_index: int
    message: str
    raw_value: str = ""


@dataclass(slots=True)
class ParsedPage:
    columns: list[str]
    rows: list[list[str]] = field(default_factory=_empty_rows)
    total_rows: int = 0
    offset: int = 0
    has_headers: bool = False
    format: SourceFormat = SourceFormat.DELIMITED
    delimiter: str | None = None
    sheet_name: str | None = None
    sheets: list[str] = field(default_factory=_empty_str_list)
    parse_errors: list[ParseFailure] = field(default_factory=_empty_failures)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=pd.Index(self.columns, dtype="object"))


@dataclass(frozen=True, slots=True)
class StreamOpened:
    format: SourceFormat
    delimiter: str | None = None
    sheet_name: str | None = None
    sheets: Sequence[str] = ()


@dataclass(frozen=True, slots=True)
class StreamHeader:
    columns: list[str]
    has_headers: bool


@dataclass(frozen=True, slots=True)
class ChunkProgress:
    processed: int
    current_row: int


@dataclass(slots=True)
class RowChunk:
    rows: list[list[str]] = field(default_factory=_empty_rows)
    row_indices: list[int] = field(default_factory=_empty_int_list)
    progress: ChunkProgress = field(default_factory=lambda: ChunkProgress(0, 0))
    parse_errors: list[ParseFailure] = field(default_factory=_empty_failures)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class StreamFinished:
    total_records: int
    rows_processed: int


StreamEvent: TypeAlias = StreamOpened | StreamHeader | RowChunk | StreamFinished
