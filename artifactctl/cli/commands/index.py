from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from artifactctl.adapters.index_fs import load_index_config
from artifactctl.cli.reporter import console
from artifactctl.internal import paths
from artifactctl.internal.errors import IndexConfigError

index_app = typer.Typer(help="Inspect the configured artifact indexes.", no_args_is_help=True)


@index_app.command("list")
def list_indexes(
    indexes_file: Optional[Path] = typer.Option(None, "--indexes-file", help="Index configuration file."),
):
    """
    List the configured indexes.
    """
    indexes_file = indexes_file or paths.get_indexes_file()
    try:
        configs = load_index_config(indexes_file)
    except IndexConfigError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)

    if not configs:
        console.print("[yellow]No indexes configured.[/yellow]")
        return

    table = Table(title="Configured Indexes")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("URL")
    for config in configs:
        table.add_row(config.name, config.url)
    console.print(table)
