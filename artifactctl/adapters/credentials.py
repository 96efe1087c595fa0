"""
Credential store reading Docker-style `config.json` files.

Only the inline forms are supported: `auth` (base64 "user:password"),
explicit `username`/`password`, and `identitytoken`. A registry without an
entry gets anonymous access.
"""
import base64
import binascii
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from artifactctl.internal.errors import CredentialError
from artifactctl.internal.logging import get_logger
from artifactctl.kernel.artifacts import Credential

logger = get_logger(__name__)


def default_config_paths() -> List[Path]:
    docker_config = os.environ.get("DOCKER_CONFIG")
    if docker_config:
        return [Path(docker_config) / "config.json"]
    return [Path.home() / ".docker" / "config.json"]


def _normalize_host(host: str) -> str:
    # Keys may be full URLs, e.g. "https://index.docker.io/v1/"
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
    return host.split("/", 1)[0]


class DockerConfigCredentialStore:
    """
    Looks a registry host up in one or more Docker config files; the first file that knows the host wins.
    """

    def __init__(self, config_paths: Optional[Sequence[Path]] = None):
        self.config_paths = [Path(p) for p in config_paths] if config_paths else default_config_paths()

    def _load_auths(self, path: Path) -> Dict[str, dict]:
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CredentialError(f"cannot read credentials from {path}: {exc}") from exc

        auths = data.get("auths") or {}
        return {_normalize_host(host): entry or {} for host, entry in auths.items()}

    def credential(self, registry: str) -> Credential:
        for path in self.config_paths:
            entry = self._load_auths(path).get(_normalize_host(registry))
            if entry is None:
                continue
            logger.debug("Found credential", registry=registry, path=str(path))
            return self._decode(registry, entry)

        logger.debug("No credential configured, using anonymous access", registry=registry)
        return Credential()

    @staticmethod
    def _decode(registry: str, entry: dict) -> Credential:
        if entry.get("identitytoken"):
            return Credential(token=entry["identitytoken"])

        if entry.get("auth"):
            try:
                decoded = base64.b64decode(entry["auth"]).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as exc:
                raise CredentialError(f"invalid auth entry for registry {registry!r}") from exc
            username, sep, password = decoded.partition(":")
            if not sep:
                raise CredentialError(f"invalid auth entry for registry {registry!r}")
            return Credential(username=username, password=password)

        return Credential(username=entry.get("username", ""), password=entry.get("password", ""))
