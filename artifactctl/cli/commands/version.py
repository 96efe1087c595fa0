import json
import importlib.metadata

import typer
import yaml

from artifactctl.internal.logging import get_logger
from artifactctl.runtime import system

logger = get_logger(__name__)

_OUTPUT_FORMATS = ("text", "json", "yaml")


def version(
    output: str = typer.Option("text", "--output", "-o", help="Output format: text, json or yaml."),
):
    """
    Show the artifactctl version and the platform artifacts are pulled for.
    """
    if output not in _OUTPUT_FORMATS:
        typer.echo(f"unsupported output format {output!r}, expected one of: {', '.join(_OUTPUT_FORMATS)}", err=True)
        raise typer.Exit(2)

    try:
        package_version = importlib.metadata.version("artifactctl")
    except importlib.metadata.PackageNotFoundError:
        typer.echo("artifactctl is not installed or version metadata not found.")
        typer.echo("Please install the package first (e.g., pip install . or pip install -e .)")
        logger.warning("artifactctl package version not found.")
        raise typer.Exit(1)

    info = {"version": package_version, "platform": f"{system.get_os()}/{system.get_arch()}"}
    if output == "json":
        typer.echo(json.dumps(info, indent=2))
    elif output == "yaml":
        typer.echo(yaml.safe_dump(info, sort_keys=False).rstrip())
    else:
        typer.echo(f"artifactctl version: {info['version']} ({info['platform']})")


if __name__ == "__main__":
    typer.run(version)
