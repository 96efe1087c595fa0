"""
Minimal OCI distribution client on top of `requests`.

Covers what an artifact install needs and nothing more:
- probing a registry (`GET /v2/`) with a credential
- Basic and Bearer-token authentication
- resolving a manifest (following an image index to the current platform)
- streaming the single artifact layer to disk with digest verification
"""
import hashlib
import re
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

import requests

from artifactctl.internal.constants import (
    DEFAULT_TAG,
    DOWNLOAD_CHUNK_SIZE,
    OCI_INDEX_MEDIA_TYPE,
    OCI_MANIFEST_MEDIA_TYPE,
    PLUGIN_CONFIG_MEDIA_TYPE,
    REGISTRY_TIMEOUT_SECONDS,
    RULESFILE_CONFIG_MEDIA_TYPE,
    TITLE_ANNOTATION,
)
from artifactctl.internal.errors import MalformedReferenceError, PullError, RegistryConnectionError
from artifactctl.internal.logging import get_logger
from artifactctl.kernel.artifacts import ArtifactKind, Credential, PullResult

logger = get_logger(__name__)

DOCKER_MANIFEST_LIST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.list.v2+json"
DOCKER_MANIFEST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v2+json"

_INDEX_MEDIA_TYPES = (OCI_INDEX_MEDIA_TYPE, DOCKER_MANIFEST_LIST_MEDIA_TYPE)
_MANIFEST_ACCEPT = ", ".join(
    (OCI_INDEX_MEDIA_TYPE, OCI_MANIFEST_MEDIA_TYPE, DOCKER_MANIFEST_LIST_MEDIA_TYPE, DOCKER_MANIFEST_MEDIA_TYPE)
)

_KIND_BY_CONFIG_MEDIA_TYPE = {
    PLUGIN_CONFIG_MEDIA_TYPE: ArtifactKind.PLUGIN.value,
    RULESFILE_CONFIG_MEDIA_TYPE: ArtifactKind.RULESFILE.value,
}

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class DownloadProgress(Protocol):
    """
    Receives updates while a blob streams to disk. `finish` is called once
    per download, whether it completed or failed.
    """

    def update(self, filename: str, done: int, total: Optional[int]) -> None:
        ...

    def finish(self, filename: str) -> None:
        ...


def parse_reference(ref: str) -> Tuple[str, str, str]:
    """
    Split 'host/repo[:tag][@digest]' into (host, repository, tag-or-digest).

    When both a tag and a digest are given, the digest is what gets pulled.
    """
    host, sep, rest = ref.partition("/")
    if not sep or not host or not rest:
        raise MalformedReferenceError(ref)

    name, at, digest = rest.partition("@")

    # A ':' in the last path component is a tag, not part of the repository
    last_slash = name.rfind("/")
    colon = name.rfind(":")
    if colon > last_slash:
        repository, tag = name[:colon], name[colon + 1:]
        if not tag:
            raise MalformedReferenceError(ref)
    else:
        repository, tag = name, DEFAULT_TAG

    reference = digest if at else tag
    if not repository or not reference:
        raise MalformedReferenceError(ref)
    return host, repository, reference


def _parse_bearer_challenge(header: str) -> Optional[Dict[str, str]]:
    scheme, _, params = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return dict(_CHALLENGE_PARAM.findall(params))


class RegistryClient:
    """
    Authenticated HTTP access to one or more OCI registries with a single credential.
    """

    def __init__(self, credential: Credential, session: Optional[requests.Session] = None, timeout: float = REGISTRY_TIMEOUT_SECONDS):
        self.credential = credential
        self.session = session or requests.Session()
        self.timeout = timeout
        self._tokens: Dict[Tuple[str, str], str] = {}

    @staticmethod
    def base_url(host: str) -> str:
        hostname = host.split(":", 1)[0]
        scheme = "http" if hostname in ("localhost", "127.0.0.1") else "https"
        return f"{scheme}://{host}"

    def _auth_headers(self, host: str, scope: str) -> dict:
        token = self._tokens.get((host, scope))
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _basic_auth(self):
        if self.credential.username or self.credential.password:
            return (self.credential.username, self.credential.password)
        return None

    def _fetch_token(self, host: str, challenge: Dict[str, str], scope: str) -> str:
        realm = challenge.get("realm")
        if not realm:
            raise requests.HTTPError(f"registry {host} sent a bearer challenge without realm")

        params = {"service": challenge.get("service", host)}
        if scope or challenge.get("scope"):
            params["scope"] = scope or challenge["scope"]

        if self.credential.token:
            r = self.session.post(
                realm,
                data=dict(params, grant_type="refresh_token", refresh_token=self.credential.token, client_id="artifactctl"),
                timeout=self.timeout,
            )
        else:
            r = self.session.get(realm, params=params, auth=self._basic_auth(), timeout=self.timeout)
        r.raise_for_status()

        body = r.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            raise requests.HTTPError(f"registry {host} token endpoint returned no token")
        return token

    def get(self, host: str, path: str, scope: str = "", headers: Optional[dict] = None, stream: bool = False) -> requests.Response:
        """
        GET a registry path, answering an authentication challenge once.
        Raises requests exceptions; the response status is left to the caller.
        """
        url = f"{self.base_url(host)}{path}"
        request_headers = dict(headers or {})
        request_headers.update(self._auth_headers(host, scope))

        r = self.session.get(url, headers=request_headers, stream=stream, timeout=self.timeout)
        if r.status_code != 401:
            return r

        challenge = _parse_bearer_challenge(r.headers.get("WWW-Authenticate", ""))
        r.close()
        if challenge is not None:
            self._tokens[(host, scope)] = self._fetch_token(host, challenge, scope)
            request_headers.update(self._auth_headers(host, scope))
            return self.session.get(url, headers=request_headers, stream=stream, timeout=self.timeout)

        return self.session.get(url, headers=request_headers, auth=self._basic_auth(), stream=stream, timeout=self.timeout)

    def __repr__(self) -> str:
        return f"<RegistryClient anonymous={self.credential.is_anonymous}>"


def check_registry_connection(registry: str, credential: Credential, session: Optional[requests.Session] = None) -> None:
    """
    Probe `GET /v2/` on the registry. Raises RegistryConnectionError when the
    registry is unreachable or rejects the credential.
    """
    client = RegistryClient(credential, session=session)
    try:
        r = client.get(registry, "/v2/")
    except requests.RequestException as exc:
        raise RegistryConnectionError(registry, str(exc)) from exc

    if r.status_code >= 400:
        raise RegistryConnectionError(registry, f"HTTP {r.status_code} from {r.url}")
    logger.debug("Registry reachable", registry=registry, status=r.status_code)


class OciPuller:
    """
    Pulls a single-layer artifact from an OCI registry into a local directory.
    """

    def __init__(self, client: RegistryClient, progress: Optional[DownloadProgress] = None):
        self.client = client
        self.progress = progress

    def pull(self, ref: str, dest_dir: Path, os_name: str, arch: str) -> PullResult:
        host, repository, reference = parse_reference(ref)
        scope = f"repository:{repository}:pull"

        try:
            manifest, digest = self._fetch_manifest(host, repository, reference, scope)
            if manifest.get("mediaType") in _INDEX_MEDIA_TYPES or "manifests" in manifest:
                platform_digest = self._select_platform(ref, manifest, os_name, arch)
                manifest, digest = self._fetch_manifest(host, repository, platform_digest, scope)

            layers = manifest.get("layers") or []
            if not isinstance(layers, list) or len(layers) != 1:
                count = len(layers) if isinstance(layers, list) else 0
                raise PullError(f"artifact {ref!r} must have exactly one layer, found {count}")
            layer = layers[0]
            _descriptor_digest(ref, layer, "layer")

            config = manifest.get("config")
            config_media_type = config.get("mediaType", "") if isinstance(config, dict) else ""
            if not isinstance(config_media_type, str):
                config_media_type = ""
            kind = _KIND_BY_CONFIG_MEDIA_TYPE.get(config_media_type, config_media_type)

            filename = self._layer_filename(layer)
            self._download_blob(host, repository, scope, layer, Path(dest_dir) / filename)
        except requests.RequestException as exc:
            raise PullError(f"cannot pull {ref!r}: {exc}") from exc

        logger.info("Artifact pulled", ref=ref, kind=kind, digest=digest, filename=filename)
        return PullResult(kind=kind, filename=filename, digest=digest)

    def _fetch_manifest(self, host: str, repository: str, reference: str, scope: str) -> Tuple[dict, str]:
        r = self.client.get(host, f"/v2/{repository}/manifests/{reference}", scope=scope, headers={"Accept": _MANIFEST_ACCEPT})
        if r.status_code >= 400:
            raise PullError(f"cannot fetch manifest {host}/{repository}:{reference}: HTTP {r.status_code}")
        try:
            manifest = r.json()
        except ValueError as exc:
            raise PullError(f"invalid manifest for {host}/{repository}:{reference}") from exc
        if not isinstance(manifest, dict):
            raise PullError(f"invalid manifest for {host}/{repository}:{reference}: expected a JSON object")
        return manifest, r.headers.get("Docker-Content-Digest", "")

    @staticmethod
    def _select_platform(ref: str, index: dict, os_name: str, arch: str) -> str:
        descriptors = index.get("manifests") or []
        if not isinstance(descriptors, list):
            raise PullError(f"invalid image index for {ref!r}: 'manifests' is not a list")

        fallback = None
        for descriptor in descriptors:
            digest = _descriptor_digest(ref, descriptor, "image index entry")
            platform = descriptor.get("platform")
            if not isinstance(platform, dict):
                fallback = fallback or digest
                continue
            if platform.get("os") == os_name and platform.get("architecture") == arch:
                return digest
        if fallback is not None:
            return fallback
        raise PullError(f"artifact {ref!r} is not available for platform {os_name}/{arch}")

    @staticmethod
    def _layer_filename(layer: dict) -> str:
        annotations = layer.get("annotations")
        title = annotations.get(TITLE_ANNOTATION) if isinstance(annotations, dict) else None
        name = Path(str(title)).name if title else ""
        # Never let the registry pick a path outside the workspace
        if name not in ("", ".", ".."):
            return name
        return f"{layer['digest'].partition(':')[2]}.tar.gz"

    def _download_blob(self, host: str, repository: str, scope: str, layer: dict, target_path: Path) -> None:
        expected = layer["digest"]
        algorithm, _, expected_hex = expected.partition(":")
        if algorithm != "sha256" or not expected_hex:
            raise PullError(f"unsupported layer digest {expected!r}")

        total = layer.get("size")
        done = 0
        h = hashlib.sha256()

        try:
            with self.client.get(host, f"/v2/{repository}/blobs/{expected}", scope=scope, stream=True) as r:
                if r.status_code >= 400:
                    raise PullError(f"cannot fetch blob {expected}: HTTP {r.status_code}")
                try:
                    with open(target_path, "wb") as f:
                        for chunk in r.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                            f.write(chunk)
                            h.update(chunk)
                            done += len(chunk)
                            if self.progress:
                                self.progress.update(target_path.name, done, total)
                except BaseException:
                    target_path.unlink(missing_ok=True)
                    raise
        finally:
            if self.progress:
                self.progress.finish(target_path.name)

        if h.hexdigest() != expected_hex:
            target_path.unlink(missing_ok=True)
            raise PullError(f"digest mismatch for {target_path.name}: expected {expected_hex}, got {h.hexdigest()}")


def _descriptor_digest(ref: str, descriptor: Any, what: str) -> str:
    """
    Return the digest of a manifest descriptor, or raise PullError when the
    registry sent something that is not a descriptor.
    """
    digest = descriptor.get("digest") if isinstance(descriptor, dict) else None
    if not isinstance(digest, str) or not digest:
        raise PullError(f"invalid {what} in manifest of {ref!r}: missing digest")
    return digest
