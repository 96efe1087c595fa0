"""
This module defines the batch install service of the artifactctl kernel.
It orchestrates the lifecycle of every requested artifact, delegating
to the adapters (index, credential store, registry, extractor).
"""
from pathlib import Path
from typing import Iterable, Optional

from artifactctl.internal.errors import RegistryConnectionError
from artifactctl.internal.logging import get_logger
from artifactctl.kernel.artifacts import BatchReport, InstallDestinations
from artifactctl.kernel.contracts import (
    ArchiveExtractor,
    ConnectivityCheck,
    CredentialStore,
    IndexLookup,
    InstallReporter,
    Puller,
    PullerFactory,
)
from artifactctl.kernel.installer import ArtifactInstaller
from artifactctl.kernel.resolver import registry_from_ref, resolve_reference
from artifactctl.kernel.workspace import scratch_workspace
from artifactctl.runtime import system

logger = get_logger(__name__)


class RegistryAccessGate:
    """
    Hands out a puller for a registry only after its credential has been
    fetched and the registry answered a probe with it.
    """

    def __init__(self, credential_store: CredentialStore, check_connection: ConnectivityCheck, puller_factory: PullerFactory):
        self.credential_store = credential_store
        self.check_connection = check_connection
        self.puller_factory = puller_factory

    def open(self, registry: str) -> Puller:
        credential = self.credential_store.credential(registry)

        try:
            self.check_connection(registry, credential)
        except RegistryConnectionError as exc:
            logger.debug("Registry probe failed", registry=registry, reason=exc.reason)
            raise
        except Exception as exc:
            logger.debug("Registry probe failed", registry=registry, reason=str(exc))
            raise RegistryConnectionError(registry, str(exc)) from exc

        return self.puller_factory(credential)


class ArtifactInstallService:
    """
    Installs a list of artifacts, one at a time and in order.

    Only a bare name missing from the indexes is skipped. Every other failure
    stops the batch and is raised; artifacts installed before it stay installed.
    """

    def __init__(
        self,
        index: IndexLookup,
        gate: RegistryAccessGate,
        destinations: InstallDestinations,
        extractor: ArchiveExtractor,
        reporter: InstallReporter,
        os_name: Optional[str] = None,
        arch: Optional[str] = None,
    ):
        self.index = index
        self.gate = gate
        self.reporter = reporter
        self.installer = ArtifactInstaller(destinations, extractor, reporter)
        # Install always targets the platform we are running on
        self.os_name = os_name or system.get_os()
        self.arch = arch or system.get_arch()

    def install_all(self, tokens: Iterable[str]) -> BatchReport:
        report = BatchReport()

        with scratch_workspace() as workspace:
            for token in tokens:
                ref = resolve_reference(token, self.index)
                if ref is None:
                    self.reporter.warning(f"cannot find {token} among the configured indexes, skipping")
                    logger.warning("Artifact not found in indexes", token=token)
                    report.skipped.append(token)
                    continue

                self._install_one(ref, workspace)
                report.installed.append(ref)

        logger.info("Batch install finished", installed=len(report.installed), skipped=len(report.skipped))
        return report

    def _install_one(self, ref: str, workspace: Path) -> None:
        self.reporter.info(f"Preparing to pull {ref!r}")

        registry = registry_from_ref(ref)
        puller = self.gate.open(registry)

        logger.info("Pulling artifact", ref=ref, registry=registry, os=self.os_name, arch=self.arch)
        result = puller.pull(ref, workspace, self.os_name, self.arch)
        logger.debug("Pulled artifact", ref=ref, kind=result.kind, filename=result.filename, digest=result.digest)

        self.installer.install(result, workspace)
