from __future__ import annotations

from typing import TYPE_CHECKING

from ...application.models import FrameKind

if TYPE_CHECKING:
    from rich.console import Console

    from ...application.models import Frame


class StreamProgressPresenter:
    """Tracks streamed frames and reports cumulative progress."""

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console
        self.chunks = 0
        self.rows = 0
        self.parse_errors = 0
        self.last_kind: FrameKind | None = None

    def update(self, frame: Frame) -> None:
        self.last_kind = frame.kind
        if frame.kind is FrameKind.DATA:
            self.chunks += 1
            self.rows = int(frame.payload.get("processed", self.rows))
            self.parse_errors += len(frame.payload.get("parse_errors", []))
            self.print_progress_line(int(frame.payload.get("current_row", 0)))

    @property
    def is_complete(self) -> bool:
        return self.last_kind is not None and self.last_kind.is_terminal

    def print_progress_line(self, current_row: int) -> None:
        status = f" [yellow]⚠ {self.parse_errors}[/yellow]" if self.parse_errors else ""
        self.console.print(
            f"[dim]Chunk {self.chunks}: {self.rows:,} rows (row {current_row}){status}[/dim]"
        )

    def print_summary(self) -> None:
        self.console.print("\n[bold]Stream:[/bold]")
        self.console.print(f"  Chunks: {self.chunks}")
        self.console.print(f"  [green]Rows: {self.rows:,}[/green]")
        if self.parse_errors:
            self.console.print(f"  [yellow]Unparseable rows: {self.parse_errors}[/yellow]")
        if self.last_kind is not FrameKind.COMPLETE and self.last_kind is not None:
            self.console.print(f"  [red]Ended with: {self.last_kind.value}[/red]")
