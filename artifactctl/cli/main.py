import typer

from artifactctl.cli.commands import (
    index,
    install,
    version,
)
from artifactctl.internal import paths
from artifactctl.internal.logging import setup_logging

app = typer.Typer(
    name="artifactctl",
    help="Install plugins and rules files from OCI registries.",
    no_args_is_help=True
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs on stderr."),
):
    setup_logging(
        log_level_name="DEBUG" if verbose else "INFO",
        log_file_path=paths.get_log_file(),
        console_output=verbose,
    )


app.command("install")(install.install)
app.command("version")(version.version)
app.add_typer(index.index_app, name="index")

if __name__ == "__main__":
    app()
