"""Helper functions shared by the CLI commands."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import click

from ..config import ConfigLoader
from ..infrastructure.container import DependencyContainer

if TYPE_CHECKING:
    from rich.console import Console

SHEET_SEPARATOR = "::"


def build_container(
    *,
    console: Console,
    config_file: Path | None,
    source_root: Path | None,
    verbose: int,
    warehouse: Path | None = None,
) -> DependencyContainer:
    try:
        config = ConfigLoader.load(config_file=config_file)
        if source_root is not None:
            config = replace(config, source_root=source_root)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    return DependencyContainer(
        config, verbose=verbose, console=console, warehouse_root=warehouse
    )


def split_sheet(argument: str) -> tuple[str, str | None]:
    """Split ``orders.xlsx::2024`` into a source id and a sheet name."""
    source_id, separator, sheet = argument.partition(SHEET_SEPARATOR)
    if not separator:
        return argument, None
    return source_id, sheet or None
