from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence
    from typing import BinaryIO

    from ...cancellation import CancellationToken
    from ...domain.entities.export import ExportOutcome
    from ...domain.entities.schema import ColumnDescriptor, MergedSchema
    from ...domain.entities.tabular import (
        ParsedPage,
        ParseOptions,
        StreamEvent,
        TabularSource,
    )
    from ...domain.services.mapping.conversion import CellValue
    from ..models import InsertResult


@runtime_checkable
class ByteSourcePort(Protocol):
    pass

    def fetch(self, source_id: str) -> BinaryIO: ...

    def size(self, source_id: str) -> int | None: ...


@runtime_checkable
class TableStorePort(Protocol):
    pass

    def exists(self, database: str, table: str) -> bool: ...

    def schema(self, database: str, table: str) -> list[ColumnDescriptor]: ...

    def create(
        self,
        database: str,
        table: str,
        columns: Sequence[ColumnDescriptor],
        *,
        properties: Mapping[str, str] | None = None,
    ) -> None: ...

    def insert(
        self,
        database: str,
        table: str,
        rows: Sequence[Mapping[str, CellValue]],
    ) -> InsertResult: ...


@runtime_checkable
class TabularReaderPort(Protocol):
    pass

    def describe(
        self,
        source_id: str,
        *,
        sheet_name: str | None = None,
        force_delimited: bool = False,
    ) -> TabularSource: ...

    def list_sheets(self, source: TabularSource) -> list[str]: ...

    def read_page(
        self,
        source: TabularSource,
        options: ParseOptions,
        token: CancellationToken | None = None,
    ) -> ParsedPage: ...

    def stream(
        self,
        source: TabularSource,
        options: ParseOptions,
        token: CancellationToken | None = None,
    ) -> Iterator[StreamEvent]: ...


@runtime_checkable
class LoggerPort(Protocol):
    pass

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def verbose(self, message: str) -> None: ...

    def log_export_start(
        self, database: str, table: str, operation: str, source_ids: list[str]
    ) -> None: ...

    def log_file_parsed(
        self, source_id: str, row_count: int, column_count: int | None = None
    ) -> None: ...

    def log_file_failed(self, source_id: str, reason: str) -> None: ...

    def log_schema_merged(self, schema: MergedSchema) -> None: ...

    def log_table_resolved(self, database: str, table: str, *, created: bool) -> None: ...

    def log_export_complete(self, outcome: ExportOutcome) -> None: ...

    def log_final_stats(self) -> None: ...
