"""
Error types raised across the kernel and its adapters.

Every fatal condition of a batch install is one of these (or a plain
OSError from the filesystem). The CLI layer catches them at the top and
turns them into a single error line and a non-zero exit code.
"""


class ArtifactctlError(Exception):
    """Base class for all artifactctl errors."""


class IndexConfigError(ArtifactctlError):
    """The index configuration or one of the index files cannot be loaded."""


class MalformedReferenceError(ArtifactctlError):
    """A reference from which no registry host can be extracted."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"cannot extract registry name from ref {ref!r}")


class CredentialError(ArtifactctlError):
    """The credential store could not produce a credential for a host."""


class RegistryConnectionError(ArtifactctlError):
    """The registry could not be reached or refused the credential."""

    def __init__(self, registry: str, reason: str = ""):
        self.registry = registry
        self.reason = reason
        super().__init__(f"unable to connect to registry {registry!r}")


class PullError(ArtifactctlError):
    """Fetching an artifact from its registry failed."""


class UnknownArtifactKindError(ArtifactctlError):
    """A pulled artifact declares a kind with no install destination."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"unknown artifact type {kind!r}: no install destination configured")


class ExtractionError(ArtifactctlError):
    """An artifact archive could not be unpacked."""
