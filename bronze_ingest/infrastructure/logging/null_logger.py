from __future__ import annotations

from typing import TYPE_CHECKING, override

from ...application.ports.services import LoggerPort

if TYPE_CHECKING:
    from ...domain.entities.export import ExportOutcome
    from ...domain.entities.schema import MergedSchema


class NullLogger(LoggerPort):
    pass

    @override
    def info(self, message: str) -> None:
        return

    @override
    def success(self, message: str) -> None:
        return

    @override
    def warning(self, message: str) -> None:
        return

    @override
    def error(self, message: str) -> None:
        return

    @override
    def debug(self, message: str) -> None:
        return

    @override
    def verbose(self, message: str) -> None:
        return

    @override
    def log_export_start(
        self, database: str, table: str, operation: str, source_ids: list[str]
    ) -> None:
        return

    @override
    def log_file_parsed(
        self, source_id: str, row_count: int, column_count: int | None = None
    ) -> None:
        return

    @override
    def log_file_failed(self, source_id: str, reason: str) -> None:
        return

    @override
    def log_schema_merged(self, schema: MergedSchema) -> None:
        return

    @override
    def log_table_resolved(self, database: str, table: str, *, created: bool) -> None:
        return

    @override
    def log_export_complete(self, outcome: ExportOutcome) -> None:
        return

    @override
    def log_final_stats(self) -> None:
        return
