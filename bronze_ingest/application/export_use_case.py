"""Export use case.

Drives one export job end to end:

    received -> schemas_merged -> table_resolved -> rows_writing
             -> completed | aborted | cancelled

Schema discovery reads every file concurrently in bounded mode, keeping at
most ``schema_sample_rows`` rows in memory while counting all records; row
writing then streams each file in batches, mapping and converting rows
onto the resolved table's columns.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from datetime import UTC, datetime
import threading
import time
from typing import TYPE_CHECKING

from ..cancellation import OperationCancelledError, check_cancelled
from ..constants import Defaults, ErrorCodes, Remediation
from ..domain.entities.export import (
    ExportOutcome,
    ExportState,
    FileOutcome,
    FileStatus,
    RowError,
)
from ..domain.entities.schema import (
    ColumnDescriptor,
    FileSchema,
    ResolutionPolicy,
)
from ..domain.entities.tabular import ParseOptions, RowChunk, StreamHeader
from ..domain.services.mapping import ColumnMapper, infer_column_type
from ..domain.services.schema_merger import (
    SchemaMergeError,
    SchemaMerger,
    validate_against_table,
)
from ..infrastructure.io.exceptions import IngestInfrastructureError, TableStoreError
from .models import ExportOperation

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..cancellation import CancellationToken
    from ..domain.entities.schema import Conflict, MergedSchema, Mismatch
    from ..domain.entities.tabular import TabularSource
    from ..domain.services.mapping.conversion import CellValue
    from .models import ExportRequest, FileExportSpec
    from .ports.services import LoggerPort, TableStorePort, TabularReaderPort


class ErrorBudgetExceeded(Exception):
    """Raised when recorded row errors pass the configured budget."""


@dataclass(slots=True)
class ExportDependencies:
    reader: TabularReaderPort
    table_store: TableStorePort
    logger: LoggerPort


@dataclass(frozen=True, slots=True)
class ExportSettings:
    default_database: str = Defaults.DATABASE
    max_row_errors: int = Defaults.MAX_ROW_ERRORS
    max_concurrent_files: int = Defaults.MAX_CONCURRENT_FILES
    batch_size: int = Defaults.BATCH_SIZE
    schema_sample_rows: int = Defaults.SCHEMA_SAMPLE_ROWS


@dataclass(slots=True)
class _DiscoveredFile:
    position: int
    spec: FileExportSpec
    source: TabularSource
    schema: FileSchema
    outcome: FileOutcome


def file_processing_error(source_id: str, message: str) -> RowError:
    return RowError(
        row_index=-1,
        column="",
        error_code=ErrorCodes.FILE_PROCESSING_ERROR,
        raw_value=source_id,
        remediation=Remediation.FILE_PROCESSING,
        message=message,
        source_id=source_id,
    )


class ExportAccumulator:
    """Aggregates per-file results into one ExportOutcome.

    Every mutation happens under one lock and touches memory only.
    """

    def __init__(
        self,
        outcome: ExportOutcome,
        *,
        max_row_errors: int,
        stop_on_first_error: bool = False,
    ) -> None:
        super().__init__()
        self._outcome = outcome
        self._lock = threading.Lock()
        self._row_error_count = 0
        self.max_row_errors = max_row_errors
        self.stop_on_first_error = stop_on_first_error

    @property
    def outcome(self) -> ExportOutcome:
        return self._outcome

    @property
    def row_error_count(self) -> int:
        return self._row_error_count

    @property
    def budget_exceeded(self) -> bool:
        with self._lock:
            return self._over_budget()

    def add_file(self, file_outcome: FileOutcome) -> None:
        with self._lock:
            self._outcome.files.append(file_outcome)
            self._outcome.files_processed += 1

    def record_file_failure(
        self, spec: FileExportSpec, message: str
    ) -> FileOutcome:
        file_outcome = FileOutcome(
            source_id=spec.source_id,
            sheet_name=spec.sheet_name,
            status=FileStatus.FAILED,
            error=message,
        )
        error = file_processing_error(spec.source_id, message)
        with self._lock:
            self._outcome.files.append(file_outcome)
            self._outcome.files_processed += 1
            self._outcome.row_errors.append(error)
            self._count(error)
        return file_outcome

    def record_error(self, error: RowError) -> None:
        """Record an error that does not count against the row budget."""
        with self._lock:
            self._outcome.row_errors.append(error)
            self._count(error)

    def record_row_errors(self, errors: Iterable[RowError]) -> bool:
        """Record row-level errors; return whether the budget is now exceeded."""
        with self._lock:
            for error in errors:
                self._row_error_count += 1
                if self._row_error_count <= self.max_row_errors + 1:
                    self._outcome.row_errors.append(error)
                self._count(error)
            return self._over_budget()

    def add_rows(self, file_outcome: FileOutcome, *, written: int, failed: int) -> None:
        with self._lock:
            file_outcome.rows_written += written
            file_outcome.rows_failed += failed
            self._outcome.rows_written += written
            self._outcome.rows_failed += failed

    def add_conflicts(self, conflicts: Sequence[Conflict]) -> None:
        with self._lock:
            self._outcome.conflicts.extend(conflicts)

    def add_mismatches(self, mismatches: Sequence[Mismatch]) -> None:
        with self._lock:
            self._outcome.mismatches.extend(mismatches)

    def _count(self, error: RowError) -> None:
        summary = self._outcome.error_summary
        summary[error.error_code] = summary.get(error.error_code, 0) + 1
        self._outcome.error_count += 1

    def _over_budget(self) -> bool:
        if self.stop_on_first_error and self._row_error_count > 0:
            return True
        return self._row_error_count > self.max_row_errors


class ExportUseCase:
    """Use case for exporting many tabular sources into one table.

    Example:
        >>> use_case = ExportUseCase(
        ...     ExportDependencies(reader=reader, table_store=store, logger=logger)
        ... )
        >>> request = ExportRequest(
        ...     files=[FileExportSpec(source_id="orders.csv")],
        ...     table_name="orders",
        ...     operation="create",
        ... )
        >>> outcome = use_case.execute(request)
        >>> outcome.state
        <ExportState.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        dependencies: ExportDependencies,
        settings: ExportSettings | None = None,
    ) -> None:
        """Initialize the use case with injected dependencies.

        Args:
            dependencies: Reader, table store and logger ports
            settings: Defaults applied where the request leaves a value unset
        """
        super().__init__()
        self.logger = dependencies.logger
        self._reader = dependencies.reader
        self._table_store = dependencies.table_store
        self._settings = settings or ExportSettings()

    def execute(
        self, request: ExportRequest, token: CancellationToken | None = None
    ) -> ExportOutcome:
        """Run the export and return its outcome.

        Budget, schema and table failures end in ``aborted``; a cancelled
        or expired token ends in ``cancelled``. Neither raises.
        """
        started = time.perf_counter()
        database = request.database or self._settings.default_database
        outcome = ExportOutcome(database=database, table_name=request.table_name)
        accumulator = ExportAccumulator(
            outcome,
            max_row_errors=(
                request.max_row_errors
                if request.max_row_errors is not None
                else self._settings.max_row_errors
            ),
            stop_on_first_error=request.stop_on_first_error,
        )
        self.logger.log_export_start(
            database,
            request.table_name,
            request.operation.value,
            [spec.source_id for spec in request.files],
        )
        try:
            self._run(request, database, accumulator, token)
        except OperationCancelledError as e:
            outcome.state = ExportState.CANCELLED
            outcome.message = f"Export cancelled: {e.reason}"
        outcome.duration_seconds = time.perf_counter() - started
        self.logger.log_export_complete(outcome)
        return outcome

    def _run(
        self,
        request: ExportRequest,
        database: str,
        accumulator: ExportAccumulator,
        token: CancellationToken | None,
    ) -> None:
        outcome = accumulator.outcome
        discovered = self._discover(request, accumulator, token)

        merger = SchemaMerger(request.resolution)
        try:
            merged = merger.merge([d.schema for d in discovered])
        except SchemaMergeError as e:
            self._abort(outcome, f"Failed to merge schemas: {e}")
            return
        accumulator.add_conflicts(merged.conflicts)
        outcome.state = ExportState.SCHEMAS_MERGED
        self.logger.log_schema_merged(merged)

        try:
            table_columns = self._resolve_table(
                request, database, merged, accumulator, file_count=len(discovered)
            )
        except TableStoreError as e:
            self._abort(outcome, f"Failed to resolve table: {e}")
            return
        if table_columns is None:
            return
        outcome.state = ExportState.TABLE_RESOLVED

        outcome.state = ExportState.ROWS_WRITING
        mapper = ColumnMapper([column.name for column in table_columns])
        batch_size = request.batch_size or self._settings.batch_size
        for file in discovered:
            try:
                self._write_file(
                    file, database, request.table_name, mapper, batch_size,
                    accumulator, token,
                )
            except ErrorBudgetExceeded:
                file.outcome.status = FileStatus.ABORTED
                self._abort(
                    outcome,
                    f"Error budget exceeded: {accumulator.row_error_count} row errors "
                    f"(max {accumulator.max_row_errors})",
                )
                return
            except OperationCancelledError:
                file.outcome.status = FileStatus.CANCELLED
                raise
            except TableStoreError as e:
                file.outcome.status = FileStatus.ABORTED
                file.outcome.error = str(e)
                self._abort(outcome, f"Failed to write {file.spec.source_id}: {e}")
                return
            except IngestInfrastructureError as e:
                file.outcome.status = FileStatus.FAILED
                file.outcome.error = str(e)
                self.logger.log_file_failed(file.spec.source_id, str(e))
                accumulator.record_error(
                    file_processing_error(file.spec.source_id, str(e))
                )

        outcome.state = ExportState.COMPLETED
        outcome.message = (
            f"Export completed. {outcome.rows_written} rows exported, "
            f"{outcome.rows_failed} rows failed"
        )

    def _discover(
        self,
        request: ExportRequest,
        accumulator: ExportAccumulator,
        token: CancellationToken | None,
    ) -> list[_DiscoveredFile]:
        workers = min(
            request.max_concurrent_files or self._settings.max_concurrent_files,
            len(request.files),
        )
        discovered: list[_DiscoveredFile] = []
        with ThreadPoolExecutor(
            max_workers=max(workers, 1), thread_name_prefix="bronze-discover"
        ) as executor:
            futures = {
                executor.submit(self._discover_file, position, spec, token): spec
                for position, spec in enumerate(request.files)
            }
            try:
                for future in as_completed(futures):
                    spec = futures[future]
                    try:
                        found = future.result()
                    except IngestInfrastructureError as e:
                        accumulator.record_file_failure(spec, str(e))
                        self.logger.log_file_failed(spec.source_id, str(e))
                        continue
                    accumulator.add_file(found.outcome)
                    self.logger.log_file_parsed(
                        spec.source_id,
                        found.schema.row_count,
                        len(found.schema.columns),
                    )
                    discovered.append(found)
            except OperationCancelledError:
                executor.shutdown(wait=True, cancel_futures=True)
                raise
        discovered.sort(key=lambda d: d.position)
        return discovered

    def _discover_file(
        self,
        position: int,
        spec: FileExportSpec,
        token: CancellationToken | None,
    ) -> _DiscoveredFile:
        check_cancelled(token)
        source = self._reader.describe(
            spec.source_id,
            sheet_name=spec.sheet_name,
            force_delimited=spec.force_delimited,
        )
        page = self._reader.read_page(
            source,
            ParseOptions(
                max_rows=self._settings.schema_sample_rows,
                assume_headers=True,
                force_delimited=spec.force_delimited,
            ),
            token,
        )
        if page.sheet_name is not None:
            source = replace(source, sheet_name=page.sheet_name)
        schema = FileSchema(
            file_name=spec.source_id,
            columns=[
                ColumnDescriptor(name=name, type=infer_column_type(name))
                for name in page.columns
            ],
            row_count=max(page.total_rows - 1, 0),
            sheet_name=page.sheet_name,
        )
        return _DiscoveredFile(
            position=position,
            spec=spec,
            source=source,
            schema=schema,
            outcome=FileOutcome(
                source_id=spec.source_id,
                sheet_name=page.sheet_name,
                status=FileStatus.PARSED,
                columns=list(page.columns),
            ),
        )

    def _resolve_table(
        self,
        request: ExportRequest,
        database: str,
        merged: MergedSchema,
        accumulator: ExportAccumulator,
        *,
        file_count: int,
    ) -> list[ColumnDescriptor] | None:
        table = request.table_name
        exists = self._table_store.exists(database, table)
        if exists and request.operation is ExportOperation.APPEND:
            live = self._table_store.schema(database, table)
            mismatches = validate_against_table(merged.columns, live)
            accumulator.add_mismatches(mismatches)
            if mismatches and request.resolution is ResolutionPolicy.STRICT:
                self._abort(
                    accumulator.outcome, "Schema mismatch detected in strict mode"
                )
                return None
            self.logger.log_table_resolved(database, table, created=False)
            return live

        columns = sorted(
            (replace(column, nullable=True) for column in merged.columns),
            key=lambda column: column.name,
        )
        self._table_store.create(
            database,
            table,
            columns,
            properties={
                "description": f"Table created from {file_count} files",
                "source_files": str(file_count),
                "created_at": datetime.now(UTC).isoformat(),
            },
        )
        self.logger.log_table_resolved(database, table, created=True)
        return columns

    def _write_file(
        self,
        file: _DiscoveredFile,
        database: str,
        table: str,
        mapper: ColumnMapper,
        batch_size: int,
        accumulator: ExportAccumulator,
        token: CancellationToken | None,
    ) -> None:
        options = ParseOptions(
            assume_headers=True,
            force_delimited=file.spec.force_delimited,
            chunk_size=batch_size,
        )
        source_id = file.spec.source_id
        mapping = None
        events = self._reader.stream(file.source, options, token)
        try:
            for event in events:
                if isinstance(event, StreamHeader):
                    mapping = mapper.map_columns(event.columns)
                    file.outcome.mismatches.extend(mapping.mismatches)
                    continue
                if not isinstance(event, RowChunk) or mapping is None:
                    continue
                check_cancelled(token)
                batch: list[dict[str, CellValue]] = []
                batch_indices: list[int] = []
                failed = 0
                exceeded = False
                for failure in event.parse_errors:
                    failed += 1
                    exceeded = accumulator.record_row_errors(
                        [
                            RowError(
                                row_index=failure.row_index,
                                column="",
                                error_code=ErrorCodes.PARSE_ERROR,
                                raw_value=failure.raw_value,
                                remediation=Remediation.PARSE,
                                message=failure.message,
                                source_id=source_id,
                            )
                        ]
                    )
                    if exceeded:
                        break
                if not exceeded:
                    for row, row_index in zip(
                        event.rows, event.row_indices, strict=True
                    ):
                        mapped = mapper.map_row(
                            row, mapping, row_index=row_index, source_id=source_id
                        )
                        if mapped.ok:
                            batch.append(mapped.values)
                            batch_indices.append(row_index)
                            continue
                        failed += 1
                        if accumulator.record_row_errors(mapped.errors):
                            exceeded = True
                            break
                # Rows converted before the budget tripped are still written.
                written = 0
                if batch:
                    written, rejected, over_budget = self._insert_batch(
                        database, table, batch, batch_indices, source_id, accumulator
                    )
                    failed += rejected
                    exceeded = exceeded or over_budget
                accumulator.add_rows(file.outcome, written=written, failed=failed)
                if exceeded:
                    raise ErrorBudgetExceeded
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                close()
        file.outcome.status = FileStatus.WRITTEN

    def _insert_batch(
        self,
        database: str,
        table: str,
        batch: list[dict[str, CellValue]],
        batch_indices: list[int],
        source_id: str,
        accumulator: ExportAccumulator,
    ) -> tuple[int, int, bool]:
        """Insert one batch; return written, rejected and budget-exceeded."""
        result = self._table_store.insert(database, table, batch)
        exceeded = accumulator.record_row_errors(
            RowError(
                row_index=batch_indices[position],
                column="",
                error_code=ErrorCodes.INSERT_ERROR,
                raw_value="",
                remediation=Remediation.INSERT,
                message=message,
                source_id=source_id,
            )
            for position, message in result.errors
        )
        return result.written, len(result.errors), exceeded

    def _abort(self, outcome: ExportOutcome, message: str) -> None:
        outcome.state = ExportState.ABORTED
        outcome.message = message
        self.logger.error(message)
