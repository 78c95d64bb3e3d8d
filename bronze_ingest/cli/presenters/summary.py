from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from ...application.models import (
        BrowseResponse,
        ConflictInfo,
        ExportResponse,
        FileOutcomeInfo,
        RowErrorInfo,
    )

MAX_ERROR_ROWS = 20
_STATUS_STYLES = {
    "written": "green",
    "parsed": "cyan",
    "failed": "red",
    "aborted": "red",
    "cancelled": "yellow",
}


@dataclass(frozen=True, slots=True)
class _FileRow:
    source: str
    sheet: str
    status: str
    written: int
    failed: int
    notes: str


class PagePresenter:
    pass

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console

    def present(self, response: BrowseResponse) -> None:
        title = response.source_id
        if response.sheet_name:
            title += f" [{response.sheet_name}]"
        table = Table(
            title=escape(title),
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
        )
        table.add_column("#", justify="right", style="dim", no_wrap=True)
        for column in response.columns:
            table.add_column(escape(column), overflow="fold")
        for position, row in enumerate(response.rows, start=response.offset + 1):
            table.add_row(str(position), *(escape(value) for value in row))
        self.console.print(table)
        self.console.print(
            f"[dim]{response.row_count} of {response.total_rows:,} rows "
            f"(offset {response.offset}, headers: "
            f"{'yes' if response.has_headers else 'no'})[/dim]"
        )
        if response.sheets and len(response.sheets) > 1:
            self.console.print(
                f"[dim]Sheets: {escape(', '.join(response.sheets))}[/dim]"
            )
        for failure in response.parse_errors:
            self.console.print(
                f"[yellow]⚠[/yellow] Row {failure.row_index}: {escape(failure.message)}"
            )
        if response.message:
            self.console.print(f"[green]✓[/green] {escape(response.message)}")


class ExportSummaryPresenter:
    pass

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console

    def present(self, response: ExportResponse) -> None:
        self.console.print()
        self.console.print(self._build_files_table(response))
        self.console.print()
        self._print_status(response)
        if response.conflicts:
            self.console.print(self._build_conflicts_table(response.conflicts))
        if response.mismatches:
            self._print_mismatches(response)
        self._print_error_details(response.row_errors, response.error_summary)

    def _build_files_table(self, response: ExportResponse) -> Table:
        table = Table(
            title=f"📊 Export to {escape(response.database)}.{escape(response.table_name)}",
            show_header=True,
            header_style="bold cyan",
            border_style="bright_blue",
            title_style="bold magenta",
        )
        table.add_column("Source", style="cyan", no_wrap=True)
        table.add_column("Sheet", style="white")
        table.add_column("Status", justify="center", no_wrap=True)
        table.add_column("Written", justify="right", style="yellow", no_wrap=True)
        table.add_column("Failed", justify="right", style="red", no_wrap=True)
        table.add_column("Notes", style="dim", overflow="fold", ratio=2)
        for row in self._file_rows(response.files):
            style = _STATUS_STYLES.get(row.status, "white")
            table.add_row(
                escape(row.source),
                escape(row.sheet),
                f"[{style}]{row.status}[/{style}]",
                f"{row.written:,}",
                f"{row.failed:,}",
                escape(row.notes),
            )
        table.add_section()
        table.add_row(
            "[bold]Total[/bold]",
            "",
            "",
            f"[bold yellow]{response.rows_exported:,}[/bold yellow]",
            f"[bold red]{response.rows_failed:,}[/bold red]",
            "",
        )
        return table

    @staticmethod
    def _file_rows(files: Sequence[FileOutcomeInfo]) -> list[_FileRow]:
        rows: list[_FileRow] = []
        for outcome in files:
            notes = outcome.error or ""
            if not notes and outcome.mismatches:
                notes = f"{len(outcome.mismatches)} column mismatch(es)"
            rows.append(
                _FileRow(
                    source=outcome.source_id,
                    sheet=outcome.sheet_name or "",
                    status=outcome.status,
                    written=outcome.rows_written,
                    failed=outcome.rows_failed,
                    notes=notes,
                )
            )
        return rows

    def _print_status(self, response: ExportResponse) -> None:
        if response.state == "completed":
            self.console.print(f"[green]✓[/green] {escape(response.message)}")
        elif response.state == "cancelled":
            self.console.print(f"[yellow]⚠[/yellow] {escape(response.message)}")
        else:
            self.console.print(f"[red]✗[/red] {escape(response.message)}")
        self.console.print(
            f"[dim]{response.files_processed} file(s) in "
            f"{response.processing_time_seconds:.2f}s[/dim]"
        )

    @staticmethod
    def _build_conflicts_table(conflicts: Sequence[ConflictInfo]) -> Table:
        table = Table(
            title="Schema conflicts",
            show_header=True,
            header_style="bold yellow",
            border_style="yellow",
        )
        table.add_column("Column", style="cyan")
        table.add_column("Kind")
        table.add_column("Resolution")
        table.add_column("Spellings", overflow="fold")
        table.add_column("Files", style="dim", overflow="fold")
        for conflict in conflicts:
            table.add_row(
                escape(conflict.column),
                conflict.kind,
                conflict.resolution,
                escape(", ".join(conflict.spellings)),
                escape(", ".join(conflict.files)),
            )
        return table

    def _print_mismatches(self, response: ExportResponse) -> None:
        self.console.print("[bold]Table mismatches:[/bold]")
        for mismatch in response.mismatches:
            detail = ""
            if mismatch.source_type and mismatch.target_type:
                detail = f" ({mismatch.source_type} -> {mismatch.target_type})"
            self.console.print(
                f"  [yellow]{mismatch.severity}[/yellow] {escape(mismatch.column)}: "
                f"{mismatch.kind}{detail}"
            )

    def _print_error_details(
        self, errors: Sequence[RowErrorInfo], summary: dict[str, int]
    ) -> None:
        if not summary:
            return
        self.console.print("[bold red]Errors by code:[/bold red]")
        for code, count in sorted(summary.items()):
            self.console.print(f"  {code}: {count:,}")
        for error in errors[:MAX_ERROR_ROWS]:
            location = f"{error.source_id or '?'} row {error.row_index}"
            if error.column:
                location += f", column {error.column}"
            self.console.print(
                f"  [dim]{escape(location)}:[/dim] {escape(error.message)} "
                f"[dim]({escape(error.remediation)})[/dim]"
            )
        if len(errors) > MAX_ERROR_ROWS:
            self.console.print(f"  [dim]... and {len(errors) - MAX_ERROR_ROWS} more[/dim]")
