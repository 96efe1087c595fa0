"""
Turns user supplied tokens into registry references.
"""
from typing import Optional

from artifactctl.internal.constants import DEFAULT_TAG
from artifactctl.internal.errors import MalformedReferenceError
from artifactctl.kernel.contracts import IndexLookup


def is_qualified_ref(token: str) -> bool:
    """
    A token carrying a tag (':') or a digest ('@') is taken as a full reference.
    """
    return ":" in token or "@" in token


def resolve_reference(token: str, index: IndexLookup) -> Optional[str]:
    """
    Resolve a token into an OCI reference.

    Fully qualified tokens are returned unchanged without looking at the index.
    Bare names are looked up by exact name and resolved to
    `<registry>/<repository>:latest`. Returns None when the name is not indexed.
    """
    if is_qualified_ref(token):
        return token

    entry = index.entry_by_name(token)
    if entry is None:
        return None
    return f"{entry.registry}/{entry.repository}:{DEFAULT_TAG}"


def registry_from_ref(ref: str) -> str:
    """
    Extract the registry host from a reference, e.g. 'ghcr.io' from 'ghcr.io/org/repo:1.0'.
    """
    index = ref.find("/")
    if index <= 0:
        raise MalformedReferenceError(ref)
    return ref[:index]
