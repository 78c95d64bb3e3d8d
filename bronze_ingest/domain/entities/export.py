from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import Conflict, Mismatch


def _empty_errors() -> list[RowError]:
    return []


def _empty_mismatches() -> list[Mismatch]:
    return []


def _empty_conflicts() -> list[Conflict]:
    return []


def _empty_outcomes() -> list[FileOutcome]:
    return []


def _empty_str_list() -> list[str]:
    return []


def _empty_summary() -> dict[str, int]:
    return {}


@dataclass(frozen=True, slots=True)
class RowError:
    """A non-fatal failure tied to one row and, where known, one column."""

    row_index: int
    column: str
    error_code: str
    raw_value: str
    remediation: str
    message: str = ""
    source_id: str | None = None


class FileStatus(str, Enum):
    PARSED = "parsed"
    FAILED = "failed"
    WRITTEN = "written"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


class ExportState(str, Enum):
    RECEIVED = "received"
    SCHEMAS_MERGED = "schemas_merged"
    TABLE_RESOLVED = "table_resolved"
    ROWS_WRITING = "rows_writing"
    COMPLETED = "completed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ExportState.COMPLETED,
            ExportState.ABORTED,
            ExportState.CANCELLED,
        )


@dataclass(slots=True)
class FileOutcome:
    source_id: str
    sheet_name: str | None = None
    status: FileStatus = FileStatus.PARSED
    rows_written: int = 0
    rows_failed: int = 0
    columns: list[str] = field(default_factory=_empty_str_list)
    mismatches: list[Mismatch] = field(default_factory=_empty_mismatches)
    error: str | None = None


@dataclass(slots=True)
class ExportOutcome:
    database: str
    table_name: str
    state: ExportState = ExportState.RECEIVED
    message: str = ""
    rows_written: int = 0
    rows_failed: int = 0
    files_processed: int = 0
    duration_seconds: float = 0.0
    files: list[FileOutcome] = field(default_factory=_empty_outcomes)
    mismatches: list[Mismatch] = field(default_factory=_empty_mismatches)
    conflicts: list[Conflict] = field(default_factory=_empty_conflicts)
    row_errors: list[RowError] = field(default_factory=_empty_errors)
    error_count: int = 0
    error_summary: dict[str, int] = field(default_factory=_empty_summary)

    @property
    def success(self) -> bool:
        if self.rows_written > 0:
            return True
        return self.error_count == 0 and self.files_processed == 0
