from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from ..constants import Defaults
from ..domain.entities.schema import ResolutionPolicy
from ..domain.entities.tabular import ParseOptions

if TYPE_CHECKING:
    from ..domain.entities.export import ExportOutcome, FileOutcome, RowError
    from ..domain.entities.schema import Conflict, Mismatch
    from ..domain.entities.tabular import ParsedPage, ParseFailure


def _empty_insert_errors() -> list[tuple[int, str]]:
    return []


@dataclass(slots=True)
class InsertResult:
    """What a table store reports for one insert call.

    ``errors`` holds ``(position in the batch, message)`` pairs for rows
    the store rejected.
    """

    written: int = 0
    errors: list[tuple[int, str]] = field(default_factory=_empty_insert_errors)


class ExportOperation(str, Enum):
    CREATE = "create"
    APPEND = "append"


class FrameKind(str, Enum):
    METADATA = "metadata"
    HEADER = "header"
    DATA = "data"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (FrameKind.COMPLETE, FrameKind.ERROR, FrameKind.CANCELLED)


class BrowseRequest(BaseModel):
    source_id: str
    sheet_name: str | None = None
    max_rows: int = Field(default=Defaults.MAX_ROWS, ge=1, le=Defaults.MAX_ROWS_CAP)
    offset: int = Field(default=0, ge=0)
    assume_headers: bool = False
    auto_detect_headers: bool = False
    force_delimited: bool = False
    stream: bool = False
    chunk_size: int = Field(default=Defaults.CHUNK_SIZE, ge=1)

    @field_validator("source_id")
    @classmethod
    def _require_source_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("source_id is required")
        return value

    @field_validator("sheet_name")
    @classmethod
    def _blank_sheet_is_default(cls, value: str | None) -> str | None:
        return value or None

    def to_options(self) -> ParseOptions:
        return ParseOptions(
            max_rows=self.max_rows,
            offset=self.offset,
            assume_headers=self.assume_headers,
            auto_detect_headers=self.auto_detect_headers,
            force_delimited=self.force_delimited,
            chunk_size=self.chunk_size,
        )


class ParseErrorInfo(BaseModel):
    row_index: int
    message: str
    raw_value: str = ""

    @classmethod
    def from_failure(cls, failure: ParseFailure) -> ParseErrorInfo:
        return cls(
            row_index=failure.row_index,
            message=failure.message,
            raw_value=failure.raw_value,
        )


class BrowseResponse(BaseModel):
    success: bool = True
    message: str = ""
    source_id: str
    format: str
    sheet_name: str | None = None
    sheets: list[str] = Field(default_factory=list)
    delimiter: str | None = None
    columns: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    total_rows: int = 0
    row_count: int = 0
    offset: int = 0
    has_headers: bool = False
    parse_errors: list[ParseErrorInfo] = Field(default_factory=list)

    @classmethod
    def from_page(
        cls, source_id: str, page: ParsedPage, *, message: str = ""
    ) -> BrowseResponse:
        return cls(
            message=message,
            source_id=source_id,
            format=page.format.tag,
            sheet_name=page.sheet_name,
            sheets=page.sheets,
            delimiter=page.delimiter,
            columns=page.columns,
            rows=page.rows,
            total_rows=page.total_rows,
            row_count=page.row_count,
            offset=page.offset,
            has_headers=page.has_headers,
            parse_errors=[ParseErrorInfo.from_failure(f) for f in page.parse_errors],
        )


class Frame(BaseModel):
    """One unit of a streaming browse response."""

    kind: FrameKind
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.kind.is_terminal

    def to_json(self) -> str:
        return self.model_dump_json()


class FileExportSpec(BaseModel):
    source_id: str = Field(min_length=1)
    sheet_name: str | None = None
    force_delimited: bool = False


class ExportRequest(BaseModel):
    files: list[FileExportSpec] = Field(min_length=1)
    table_name: str = Field(min_length=1)
    operation: ExportOperation = ExportOperation.APPEND
    database: str | None = None
    resolution: ResolutionPolicy = ResolutionPolicy.UNION
    max_row_errors: int | None = Field(default=None, ge=0)
    stop_on_first_error: bool = False
    max_concurrent_files: int | None = Field(default=None, ge=1)
    batch_size: int | None = Field(default=None, ge=1)

    @field_validator("table_name")
    @classmethod
    def _strip_table_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("table_name is required")
        return value


class MismatchInfo(BaseModel):
    column: str
    kind: str
    severity: str
    source_type: str | None = None
    target_type: str | None = None

    @classmethod
    def from_mismatch(cls, mismatch: Mismatch) -> MismatchInfo:
        return cls(
            column=mismatch.column,
            kind=mismatch.kind.value,
            severity=mismatch.severity.value,
            source_type=mismatch.source_type.value if mismatch.source_type else None,
            target_type=mismatch.target_type.value if mismatch.target_type else None,
        )


class ConflictInfo(BaseModel):
    column: str
    kind: str
    resolution: str
    files: list[str]
    spellings: list[str]

    @classmethod
    def from_conflict(cls, conflict: Conflict) -> ConflictInfo:
        return cls(
            column=conflict.column,
            kind=conflict.kind.value,
            resolution=conflict.resolution.value,
            files=conflict.contributing_files,
            spellings=list(dict.fromkeys(f.column_name for f in conflict.files)),
        )


class RowErrorInfo(BaseModel):
    row_index: int
    column: str
    error_code: str
    raw_value: str
    remediation: str
    message: str = ""
    source_id: str | None = None

    @classmethod
    def from_error(cls, error: RowError) -> RowErrorInfo:
        return cls(
            row_index=error.row_index,
            column=error.column,
            error_code=error.error_code,
            raw_value=error.raw_value,
            remediation=error.remediation,
            message=error.message,
            source_id=error.source_id,
        )


class FileOutcomeInfo(BaseModel):
    source_id: str
    sheet_name: str | None = None
    status: str
    rows_written: int = 0
    rows_failed: int = 0
    columns: list[str] = Field(default_factory=list)
    mismatches: list[MismatchInfo] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: FileOutcome) -> FileOutcomeInfo:
        return cls(
            source_id=outcome.source_id,
            sheet_name=outcome.sheet_name,
            status=outcome.status.value,
            rows_written=outcome.rows_written,
            rows_failed=outcome.rows_failed,
            columns=outcome.columns,
            mismatches=[MismatchInfo.from_mismatch(m) for m in outcome.mismatches],
            error=outcome.error,
        )


class ExportResponse(BaseModel):
    success: bool
    state: str
    message: str = ""
    database: str
    table_name: str
    files_processed: int = 0
    rows_exported: int = 0
    rows_failed: int = 0
    processing_time_seconds: float = 0.0
    files: list[FileOutcomeInfo] = Field(default_factory=list)
    mismatches: list[MismatchInfo] = Field(default_factory=list)
    conflicts: list[ConflictInfo] = Field(default_factory=list)
    row_errors: list[RowErrorInfo] = Field(default_factory=list)
    error_summary: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_outcome(cls, outcome: ExportOutcome) -> ExportResponse:
        return cls(
            success=outcome.success,
            state=outcome.state.value,
            message=outcome.message,
            database=outcome.database,
            table_name=outcome.table_name,
            files_processed=outcome.files_processed,
            rows_exported=outcome.rows_written,
            rows_failed=outcome.rows_failed,
            processing_time_seconds=outcome.duration_seconds,
            files=[FileOutcomeInfo.from_outcome(f) for f in outcome.files],
            mismatches=[MismatchInfo.from_mismatch(m) for m in outcome.mismatches],
            conflicts=[ConflictInfo.from_conflict(c) for c in outcome.conflicts],
            row_errors=[RowErrorInfo.from_error(e) for e in outcome.row_errors],
            error_summary=outcome.error_summary,
        )
