from pathlib import Path

from artifactctl.internal.logging import get_logger
from artifactctl.kernel.artifacts import InstallDestinations, PullResult
from artifactctl.kernel.contracts import ArchiveExtractor, InstallReporter

logger = get_logger(__name__)


class ArtifactInstaller:
    """
    Moves a pulled artifact from the scratch workspace to its install directory.
    """

    def __init__(self, destinations: InstallDestinations, extractor: ArchiveExtractor, reporter: InstallReporter):
        self.destinations = destinations
        self.extractor = extractor
        self.reporter = reporter

    def install(self, result: PullResult, workspace: Path) -> Path:
        """
        Extract the pulled archive into the directory for its kind, then delete the archive.

        Any failure (unknown kind, open, extract, remove) is raised to the caller.
        Returns the destination directory.
        """
        dest_dir = self.destinations.for_kind(result.kind)
        archive = Path(workspace) / result.filename

        logger.info("Extracting artifact", kind=result.kind, archive=str(archive), dest_dir=str(dest_dir))
        with self.reporter.working(f"Extracting and installing {result.kind!r} {str(archive)!r}"):
            with open(archive, "rb") as f:
                self.extractor(f, dest_dir)

        archive.unlink()

        self.reporter.success(f"Artifact successfully installed in {str(dest_dir)!r}")
        return dest_dir
