from pathlib import Path
from typing import List, Optional

import typer

from artifactctl.adapters.archive import extract_tar_gz
from artifactctl.adapters.credentials import DockerConfigCredentialStore
from artifactctl.adapters.index_fs import load_merged_indexes
from artifactctl.adapters.registry_http import OciPuller, RegistryClient, check_registry_connection
from artifactctl.cli.reporter import ConsoleReporter, PullProgress
from artifactctl.internal import paths
from artifactctl.internal.constants import DEFAULT_PLUGINS_DIR, DEFAULT_RULESFILES_DIR
from artifactctl.internal.errors import ArtifactctlError
from artifactctl.internal.logging import get_logger
from artifactctl.kernel.artifacts import InstallDestinations
from artifactctl.kernel.orchestrator import ArtifactInstallService, RegistryAccessGate

logger = get_logger(__name__)


def install(
    refs: List[str] = typer.Argument(..., help="Artifact names or references (e.g. ghcr.io/org/repo:1.0)."),
    rulesfiles_dir: Path = typer.Option(
        DEFAULT_RULESFILES_DIR, "--rulesfiles-dir", help="Directory where to install rules."
    ),
    plugins_dir: Path = typer.Option(
        DEFAULT_PLUGINS_DIR, "--plugins-dir", help="Directory where to install plugins."
    ),
    indexes_file: Optional[Path] = typer.Option(
        None, "--indexes-file", help="Index configuration file. Defaults to ~/.artifactctl/indexes.yaml."
    ),
):
    """
    Install a list of artifacts.
    """
    reporter = ConsoleReporter()
    progress = PullProgress()

    indexes_file = indexes_file or paths.get_indexes_file()

    try:
        reporter.info(f"Reading all configured index files from {str(indexes_file)!r}")
        reporter.info("Loading index files ...")
        merged = load_merged_indexes(indexes_file)
        reporter.info("Merging all configured indexes ...")

        gate = RegistryAccessGate(
            credential_store=DockerConfigCredentialStore(),
            check_connection=check_registry_connection,
            puller_factory=lambda credential: OciPuller(RegistryClient(credential), progress=progress),
        )
        service = ArtifactInstallService(
            index=merged,
            gate=gate,
            destinations=InstallDestinations(plugins_dir=plugins_dir, rulesfiles_dir=rulesfiles_dir),
            extractor=extract_tar_gz,
            reporter=reporter,
        )
        service.install_all(refs)

    except (ArtifactctlError, OSError) as exc:
        logger.error("Artifact install failed", error=str(exc), exc_info=exc)
        reporter.error(str(exc))
        raise typer.Exit(1)
    finally:
        progress.stop()


if __name__ == "__main__":
    typer.run(install)
