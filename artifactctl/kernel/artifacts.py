"""
Defines the data the kernel passes between its install stages.

These are plain, immutable records. Adapters produce them (index files,
registry pulls) and the kernel consumes them; nothing here performs I/O.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from artifactctl.internal.errors import UnknownArtifactKindError


class ArtifactKind(str, Enum):
    """
    The closed set of artifact kinds the installer knows where to put.
    """
    PLUGIN = "plugin"
    RULESFILE = "rulesfile"


@dataclass(frozen=True)
class IndexEntry:
    """
    A single record of an index: where a named artifact lives.
    """
    name: str
    registry: str
    repository: str
    type: str = ""
    description: str = ""
    home: str = ""
    keywords: tuple[str, ...] = ()
    license: str = ""
    maintainers: tuple[dict, ...] = ()
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class Credential:
    """
    Credential for a single registry host. An empty credential means anonymous access.
    """
    username: str = ""
    password: str = ""
    token: str = ""

    @property
    def is_anonymous(self) -> bool:
        return not (self.username or self.password or self.token)


@dataclass(frozen=True)
class PullResult:
    """
    Outcome of a single pull.

    `filename` is relative to the scratch workspace the artifact was pulled into.
    `kind` is whatever the registry declared; it is only checked against
    ArtifactKind when the installer picks a destination.
    """
    kind: str
    filename: str
    digest: str = ""


@dataclass(frozen=True)
class InstallDestinations:
    """
    Where each artifact kind gets installed. Configurable globally, never per artifact.
    """
    plugins_dir: Path
    rulesfiles_dir: Path

    def for_kind(self, kind: str) -> Path:
        """
        Map an artifact kind to its install directory.

        Raises UnknownArtifactKindError for anything outside ArtifactKind.
        """
        if kind == ArtifactKind.PLUGIN:
            return Path(self.plugins_dir)
        elif kind == ArtifactKind.RULESFILE:
            return Path(self.rulesfiles_dir)
        else:
            raise UnknownArtifactKindError(str(kind))


@dataclass
class BatchReport:
    """Summary of one install_all run."""
    installed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
