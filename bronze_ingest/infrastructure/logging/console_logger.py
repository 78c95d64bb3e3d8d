from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING, override

from rich.console import Console
from rich.markup import escape

from ...application.ports.services import LoggerPort
from ...domain.entities.export import ExportState

if TYPE_CHECKING:
    from ...domain.entities.export import ExportOutcome
    from ...domain.entities.schema import MergedSchema


class LogLevel(IntEnum):
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass(slots=True)
class LogContext:
    source_id: str = ""
    table: str = ""
    operation: str = ""
    start_time: datetime = field(default_factory=datetime.now)

    def elapsed_ms(self) -> float:
        return (datetime.now() - self.start_time).total_seconds() * 1000


def _fresh_stats() -> dict[str, int]:
    return {
        "files_processed": 0,
        "files_failed": 0,
        "rows_written": 0,
        "rows_failed": 0,
        "warnings": 0,
        "errors": 0,
    }


class ConsoleLogger(LoggerPort):
    pass

    def __init__(self, console: Console | None = None, verbosity: int = 0) -> None:
        super().__init__()
        self.console = console or Console()
        self.verbosity = verbosity
        self._context: LogContext | None = None
        self._stats: dict[str, int] = _fresh_stats()

    def set_context(self, **kwargs: str) -> None:
        if self._context is None:
            self._context = LogContext()
        for key, value in kwargs.items():
            if hasattr(self._context, key):
                setattr(self._context, key, value)

    def clear_context(self) -> None:
        self._context = None

    @override
    def info(self, message: str, *, level: int = LogLevel.NORMAL) -> None:
        if self.verbosity >= level:
            prefix = self._get_prefix()
            self.console.print(f"{prefix}{message}")

    @override
    def verbose(self, message: str) -> None:
        if self.verbosity >= LogLevel.VERBOSE:
            prefix = self._get_prefix()
            self.console.print(f"[dim]{prefix}{message}[/dim]")

    @override
    def debug(self, message: str) -> None:
        if self.verbosity >= LogLevel.DEBUG:
            prefix = self._get_prefix()
            self.console.print(f"[dim cyan]{prefix}{message}[/dim cyan]")

    @override
    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    @override
    def warning(self, message: str) -> None:
        self._stats["warnings"] += 1
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    @override
    def error(self, message: str) -> None:
        self._stats["errors"] += 1
        self.console.print(f"[red]✗[/red] {message}")

    @override
    def log_export_start(
        self, database: str, table: str, operation: str, source_ids: list[str]
    ) -> None:
        self.set_context(table=f"{database}.{table}", operation=operation)
        self.console.print()
        self.console.print(
            f"[bold]Exporting {len(source_ids)} file(s) to {database}.{table}[/bold]"
            f" [dim]({operation})[/dim]"
        )
        for source_id in source_ids:
            self.verbose(f"  - {source_id}")

    @override
    def log_file_parsed(
        self, source_id: str, row_count: int, column_count: int | None = None
    ) -> None:
        self.set_context(source_id=source_id)
        self._stats["files_processed"] += 1
        msg = f"  Parsed {source_id}: {row_count:,} rows"
        if column_count is not None and self.verbosity >= LogLevel.DEBUG:
            msg += f" ({column_count} columns)"
        self.verbose(msg)

    @override
    def log_file_failed(self, source_id: str, reason: str) -> None:
        self._stats["files_failed"] += 1
        self.warning(f"Skipped {source_id}: {reason}")

    @override
    def log_schema_merged(self, schema: MergedSchema) -> None:
        self.verbose(
            f"Merged schema ({schema.policy.value}): {len(schema.columns)} columns "
            f"from {len(schema.source_files)} file(s)"
        )
        for conflict in schema.conflicts:
            self.debug(
                f"    Conflict on {conflict.column}: {conflict.kind.value} "
                f"-> {conflict.resolution.value}"
            )

    @override
    def log_table_resolved(self, database: str, table: str, *, created: bool) -> None:
        if created:
            self.success(f"Created table {database}.{table}")
        else:
            self.verbose(f"Appending to existing table {database}.{table}")

    @override
    def log_export_complete(self, outcome: ExportOutcome) -> None:
        self._stats["rows_written"] += outcome.rows_written
        self._stats["rows_failed"] += outcome.rows_failed
        elapsed = ""
        if self._context is not None and self.verbosity >= LogLevel.DEBUG:
            elapsed = f" in {self._context.elapsed_ms():.0f} ms"
        summary = (
            f"{outcome.table_name}: {outcome.rows_written:,} rows written, "
            f"{outcome.rows_failed:,} failed ({outcome.state.value}){elapsed}"
        )
        if outcome.state is ExportState.COMPLETED:
            self.success(summary)
        else:
            self.error(f"{summary}: {outcome.message}")
        self.clear_context()

    @override
    def log_final_stats(self) -> None:
        if self.verbosity >= LogLevel.VERBOSE:
            self.console.print()
            self.console.print("[dim]Processing Statistics:[/dim]")
            self.console.print(
                f"[dim]  Files processed: {self._stats['files_processed']}[/dim]"
            )
            if self._stats["files_failed"] > 0:
                self.console.print(
                    f"[dim]  Files failed: {self._stats['files_failed']}[/dim]"
                )
            self.console.print(
                f"[dim]  Rows written: {self._stats['rows_written']:,}[/dim]"
            )
            self.console.print(
                f"[dim]  Rows failed: {self._stats['rows_failed']:,}[/dim]"
            )
            if self._stats["warnings"] > 0:
                self.console.print(
                    f"[dim yellow]  Warnings: {self._stats['warnings']}[/dim yellow]"
                )
            if self._stats["errors"] > 0:
                self.console.print(
                    f"[dim red]  Errors: {self._stats['errors']}[/dim red]"
                )

    def get_stats(self) -> dict[str, int]:
        return self._stats.copy()

    def reset_stats(self) -> None:
        self._stats = _fresh_stats()

    def _get_prefix(self) -> str:
        if self._context is None or self.verbosity < LogLevel.DEBUG:
            return ""
        parts: list[str] = []
        if self._context.table:
            parts.append(self._context.table)
        if self._context.source_id:
            parts.append(self._context.source_id)
        return escape(f"[{':'.join(parts)}] ") if parts else ""
