import click

from .commands.browse import browse_command, sheets_command
from .commands.export import export_command


@click.group()
def app() -> None:
    pass


app.add_command(browse_command, name="browse")
app.add_command(sheets_command, name="sheets")
app.add_command(export_command, name="export")
__all__ = ["app"]
