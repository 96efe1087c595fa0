from pathlib import Path
from typing import BinaryIO, Callable, ContextManager, Optional, Protocol

from artifactctl.kernel.artifacts import Credential, IndexEntry, PullResult


class IndexLookup(Protocol):
    """
    A pre-merged view over all configured indexes.
    How duplicate names across indexes are resolved is up to the implementation.
    """

    def entry_by_name(self, name: str) -> Optional[IndexEntry]:
        """
        Return the entry with exactly this name, or None.
        """
        ...


class CredentialStore(Protocol):

    def credential(self, registry: str) -> Credential:
        """
        Return the credential for a registry host.
        Anonymous access is an empty Credential, not an error.
        """
        ...


class ConnectivityCheck(Protocol):

    def __call__(self, registry: str, credential: Credential) -> None:
        """
        Probe the registry with the credential. Raises on failure.
        """
        ...


class Puller(Protocol):
    """
    Performs the authenticated fetch of one artifact.
    """

    def pull(self, ref: str, dest_dir: Path, os_name: str, arch: str) -> PullResult:
        """
        Pull `ref` for the given platform into `dest_dir`.

        The returned PullResult.filename is relative to `dest_dir`.
        """
        ...


PullerFactory = Callable[[Credential], Puller]


class ArchiveExtractor(Protocol):

    def __call__(self, stream: BinaryIO, dest_dir: Path) -> None:
        """
        Unpack a gzip-compressed tar stream into dest_dir. Raises on failure.
        """
        ...


class InstallReporter(Protocol):
    """
    User-facing output of a batch run. Logging is separate from this.
    """

    def info(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...

    def working(self, message: str) -> ContextManager:
        """
        Context manager shown while a long step (extraction) runs.
        """
        ...
