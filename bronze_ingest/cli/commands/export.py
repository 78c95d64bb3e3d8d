"""Export command - load many tabular sources into one table.

Parses the CLI arguments into an ExportRequest, runs the ExportUseCase and
renders the ExportResponse.
"""

from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from ...application.models import (
    ExportOperation,
    ExportRequest,
    ExportResponse,
    FileExportSpec,
)
from ...domain.entities.schema import ResolutionPolicy
from ..helpers import build_container, split_sheet
from ..presenters import ExportSummaryPresenter
from .browse import config_option, source_root_option

console = Console()


@click.command()
@click.argument("source_ids", nargs=-1, required=True)
@click.option("--table", "table_name", required=True, help="Destination table")
@config_option
@source_root_option
@click.option(
    "--warehouse",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("warehouse"),
    show_default=True,
    help="Directory holding the destination tables",
)
@click.option("--database", help="Destination database (default: from config)")
@click.option(
    "--operation",
    type=click.Choice([op.value for op in ExportOperation]),
    default=ExportOperation.APPEND.value,
    show_default=True,
    help="Create a new table or append to an existing one",
)
@click.option(
    "--resolution",
    type=click.Choice([policy.value for policy in ResolutionPolicy]),
    default=ResolutionPolicy.UNION.value,
    show_default=True,
    help="How column sets of different files are reconciled",
)
@click.option(
    "--max-errors",
    "max_row_errors",
    type=click.IntRange(min=0),
    help="Row errors tolerated before the export aborts (default: from config)",
)
@click.option(
    "--stop-on-first-error",
    is_flag=True,
    help="Abort at the first row error",
)
@click.option(
    "--max-concurrent",
    "max_concurrent_files",
    type=click.IntRange(min=1),
    help="Files whose schemas are read in parallel (default: from config)",
)
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    help="Rows per insert (default: from config)",
)
@click.option(
    "--force-delimited",
    is_flag=True,
    help="Read every source as delimited text whatever its extension",
)
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON")
@click.option(
    "-v", "--verbose", count=True, help="Increase verbosity level (e.g., -v, -vv)"
)
def export_command(
    source_ids: tuple[str, ...],
    table_name: str,
    config_file: Path | None,
    source_root: Path | None,
    warehouse: Path,
    database: str | None,
    operation: str,
    resolution: str,
    max_row_errors: int | None,
    stop_on_first_error: bool,
    max_concurrent_files: int | None,
    batch_size: int | None,
    force_delimited: bool,
    as_json: bool,
    verbose: int,
) -> None:
    """Export one or more sources into a table.

    A spreadsheet sheet is selected with SOURCE::SHEET; without it the
    first sheet is read.

    Examples:

    \b
        # Create a table from two CSV exports
        bronze-ingest export jan.csv feb.csv --table orders --operation create

    \b
        # Append a sheet, tolerating at most 10 bad rows
        bronze-ingest export book.xlsx::Q3 --table orders --max-errors 10
    """
    files: list[FileExportSpec] = []
    try:
        for argument in source_ids:
            source_id, sheet_name = split_sheet(argument)
            files.append(
                FileExportSpec(
                    source_id=source_id,
                    sheet_name=sheet_name,
                    force_delimited=force_delimited,
                )
            )
        request = ExportRequest(
            files=files,
            table_name=table_name,
            operation=ExportOperation(operation),
            database=database,
            resolution=ResolutionPolicy(resolution),
            max_row_errors=max_row_errors,
            stop_on_first_error=stop_on_first_error,
            max_concurrent_files=max_concurrent_files,
            batch_size=batch_size,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    container = build_container(
        console=console,
        config_file=config_file,
        source_root=source_root,
        verbose=verbose,
        warehouse=warehouse,
    )
    if as_json:
        container.use_null_logger = True
    use_case = container.create_export_use_case()
    outcome = use_case.execute(request)
    response = ExportResponse.from_outcome(outcome)

    if as_json:
        click.echo(response.model_dump_json(indent=2))
    else:
        ExportSummaryPresenter(console).present(response)
        container.create_logger().log_final_stats()

    if not response.success or response.state != "completed":
        raise click.ClickException(response.message or "Export failed")
