"""Browse and sheets commands.

Thin adapters between click and the BrowseUseCase: parse arguments, build
a BrowseRequest, call the use case and hand the response to a presenter.
"""

from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from ...application.models import BrowseRequest, FrameKind
from ...constants import Defaults
from ...infrastructure.io.exceptions import IngestInfrastructureError
from ..helpers import build_container
from ..presenters import PagePresenter, StreamProgressPresenter

console = Console()
err_console = Console(stderr=True)

source_root_option = click.option(
    "--source-root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory source ids are resolved against (default: from config)",
)
config_option = click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a bronze_ingest.toml config file (default: ./bronze_ingest.toml)",
)


@click.command()
@click.argument("source_id")
@config_option
@source_root_option
@click.option("--sheet", "sheet_name", help="Sheet to read (default: first sheet)")
@click.option(
    "--max-rows",
    type=click.IntRange(1, Defaults.MAX_ROWS_CAP),
    default=Defaults.MAX_ROWS,
    show_default=True,
    help="Maximum number of rows to return",
)
@click.option(
    "--offset",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Data rows to skip before the window",
)
@click.option(
    "--headers/--no-headers",
    "assume_headers",
    default=False,
    show_default=True,
    help="Treat the first row as column names",
)
@click.option(
    "--detect-headers",
    "auto_detect_headers",
    is_flag=True,
    help="Decide header presence from the first two rows",
)
@click.option(
    "--force-delimited",
    is_flag=True,
    help="Read the source as delimited text whatever its extension",
)
@click.option(
    "--stream",
    is_flag=True,
    help="Emit JSON frames, one per line, instead of a single page",
)
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=Defaults.CHUNK_SIZE,
    show_default=True,
    help="Rows per data frame in streaming mode",
)
@click.option("--json", "as_json", is_flag=True, help="Print the page as JSON")
@click.option(
    "-v", "--verbose", count=True, help="Increase verbosity level (e.g., -v, -vv)"
)
def browse_command(
    source_id: str,
    config_file: Path | None,
    source_root: Path | None,
    sheet_name: str | None,
    max_rows: int,
    offset: int,
    assume_headers: bool,
    auto_detect_headers: bool,
    force_delimited: bool,
    stream: bool,
    chunk_size: int,
    as_json: bool,
    verbose: int,
) -> None:
    """Preview a window of rows from a delimited file or spreadsheet.

    Examples:

    \b
        # First 100 rows of a CSV file, first row as header
        bronze-ingest browse orders.csv --headers

    \b
        # Rows 6-10 of the second sheet
        bronze-ingest browse book.xlsx --sheet Q2 --offset 5 --max-rows 5

    \b
        # Stream a large file as JSON lines
        bronze-ingest browse big.csv --stream --chunk-size 500
    """
    try:
        request = BrowseRequest(
            source_id=source_id,
            sheet_name=sheet_name,
            max_rows=max_rows,
            offset=offset,
            assume_headers=assume_headers,
            auto_detect_headers=auto_detect_headers,
            force_delimited=force_delimited,
            stream=stream,
            chunk_size=chunk_size,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    container = build_container(
        # Frames own stdout while streaming.
        console=err_console if stream else console,
        config_file=config_file,
        source_root=source_root,
        verbose=verbose,
    )
    use_case = container.create_browse_use_case()

    if stream:
        progress = StreamProgressPresenter(err_console)
        for frame in use_case.stream(request):
            click.echo(frame.to_json())
            if verbose:
                progress.update(frame)
            if frame.kind in (FrameKind.ERROR, FrameKind.CANCELLED):
                raise click.exceptions.Exit(1)
        if verbose:
            progress.print_summary()
        return

    try:
        response = use_case.execute(request)
    except IngestInfrastructureError as e:
        raise click.ClickException(str(e)) from e
    if as_json:
        click.echo(response.model_dump_json(indent=2))
        return
    PagePresenter(console).present(response)


@click.command()
@click.argument("source_id")
@config_option
@source_root_option
@click.option(
    "--force-delimited",
    is_flag=True,
    help="Read the source as delimited text whatever its extension",
)
def sheets_command(
    source_id: str,
    config_file: Path | None,
    source_root: Path | None,
    force_delimited: bool,
) -> None:
    """List the sheets of a spreadsheet source."""
    container = build_container(
        console=console,
        config_file=config_file,
        source_root=source_root,
        verbose=0,
    )
    use_case = container.create_browse_use_case()
    try:
        names = use_case.list_sheets(source_id, force_delimited=force_delimited)
    except IngestInfrastructureError as e:
        raise click.ClickException(str(e)) from e
    if not names:
        console.print(f"[dim]{source_id} has no sheets (delimited source)[/dim]")
        return
    for name in names:
        click.echo(name)
