"""Domain entities.

Tabular sources and parse results, schema descriptors and export outcomes.
"""

from .export import (
    ExportOutcome,
    ExportState,
    FileOutcome,
    FileStatus,
    RowError,
)
from .schema import (
    TYPE_PRECEDENCE,
    ColumnAssignment,
    ColumnDescriptor,
    ColumnMapping,
    ColumnType,
    Conflict,
    ConflictKind,
    ConflictResolution,
    FileColumn,
    FileSchema,
    MatchKind,
    MergedSchema,
    Mismatch,
    MismatchKind,
    ResolutionPolicy,
    Severity,
)
from .tabular import (
    ChunkProgress,
    ParsedPage,
    ParseFailure,
    ParseOptions,
    RowChunk,
    SourceFormat,
    StreamEvent,
    StreamFinished,
    StreamHeader,
    StreamOpened,
    TabularSource,
    detect_format,
)

__all__ = [
    # Tabular
    "ChunkProgress",
    "ParseFailure",
    "ParseOptions",
    "ParsedPage",
    "RowChunk",
    "SourceFormat",
    "StreamEvent",
    "StreamFinished",
    "StreamHeader",
    "StreamOpened",
    "TabularSource",
    "detect_format",
    # Schema
    "TYPE_PRECEDENCE",
    "ColumnAssignment",
    "ColumnDescriptor",
    "ColumnMapping",
    "ColumnType",
    "Conflict",
    "ConflictKind",
    "ConflictResolution",
    "FileColumn",
    "FileSchema",
    "MatchKind",
    "MergedSchema",
    "Mismatch",
    "MismatchKind",
    "ResolutionPolicy",
    "Severity",
    # Export
    "ExportOutcome",
    "ExportState",
    "FileOutcome",
    "FileStatus",
    "RowError",
]
