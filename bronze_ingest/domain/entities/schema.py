"""Schema entities: column descriptors, mappings, mismatches and conflicts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"
    TEXT = "text"

    @property
    def storage_type(self) -> str:
        return _STORAGE_TYPES[self]


_STORAGE_TYPES: dict[ColumnType, str] = {
    ColumnType.NUMERIC: "DOUBLE",
    ColumnType.TEMPORAL: "TIMESTAMP",
    ColumnType.BOOLEAN: "BOOLEAN",
    ColumnType.TEXT: "VARCHAR",
}

# Cross-file resolution order: the first type present wins.
TYPE_PRECEDENCE: tuple[ColumnType, ...] = (
    ColumnType.BOOLEAN,
    ColumnType.NUMERIC,
    ColumnType.TEMPORAL,
    ColumnType.TEXT,
)


class MismatchKind(str, Enum):
    MISSING = "missing"
    EXTRA = "extra"
    CASE_DIFFERENCE = "case_difference"
    TYPE_DIFFERENCE = "type_difference"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class MatchKind(str, Enum):
    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    NORMALIZED = "normalized"
    FUZZY = "fuzzy"


class ResolutionPolicy(str, Enum):
    UNION = "union"
    FIRST_FILE = "first_file"
    MANUAL = "manual"
    STRICT = "strict"


class ConflictKind(str, Enum):
    CASE_DIFFERENCE = "case_difference"
    FORMAT_DIFFERENCE = "format_difference"
    NAME_DIFFERENCE = "name_difference"
    MISSING_IN_FIRST = "missing_in_first"
    TYPE_DIFFERENCE = "type_difference"


class ConflictResolution(str, Enum):
    USE_FIRST_OCCURRENCE = "use_first_occurrence"
    EXCLUDE_COLUMN = "exclude_column"
    MANUAL_REQUIRED = "manual_resolution_required"
    WIDEST_TYPE = "widest_type"
    KEEP_SEPARATE = "keep_separate"


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    name: str
    type: ColumnType = ColumnType.TEXT
    nullable: bool = True


@dataclass(frozen=True, slots=True)
class Mismatch:
    column: str
    kind: MismatchKind
    severity: Severity
    source_type: ColumnType | None = None
    target_type: ColumnType | None = None


@dataclass(frozen=True, slots=True)
class ColumnAssignment:
    source_index: int
    source_column: str
    target_column: str
    match_kind: MatchKind


@dataclass(slots=True)
class ColumnMapping:
    """Source-to-target assignment for one file plus its mismatch report.

    Each source position maps to at most one target and each target is
    claimed by at most one source position.
    """

    source_columns: list[str]
    target_columns: list[str]
    assignments: list[ColumnAssignment] = field(default_factory=list)
    mismatches: list[Mismatch] = field(default_factory=list)

    def as_dict(self) -> dict[str, str]:
        return {a.source_column: a.target_column for a in self.assignments}

    def target_for(self, source_index: int) -> str | None:
        for assignment in self.assignments:
            if assignment.source_index == source_index:
                return assignment.target_column
        return None

    @property
    def mapped_targets(self) -> set[str]:
        return {a.target_column for a in self.assignments}


@dataclass(frozen=True, slots=True)
class FileColumn:
    file_name: str
    column_name: str
    type: ColumnType = ColumnType.TEXT


@dataclass(slots=True)
class Conflict:
    column: str
    kind: ConflictKind
    files: list[FileColumn]
    resolution: ConflictResolution

    @property
    def contributing_files(self) -> list[str]:
        seen: list[str] = []
        for file_column in self.files:
            if file_column.file_name not in seen:
                seen.append(file_column.file_name)
        return seen


@dataclass(slots=True)
class FileSchema:
    """Columns discovered for one parsed file."""

    file_name: str
    columns: list[ColumnDescriptor]
    row_count: int = 0
    sheet_name: str | None = None

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]


@dataclass(slots=True)
class MergedSchema:
    columns: list[ColumnDescriptor]
    policy: ResolutionPolicy
    source_files: list[FileSchema] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
    total_rows: int = 0

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def column_types(self) -> dict[str, ColumnType]:
        return {column.name: column.type for column in self.columns}
