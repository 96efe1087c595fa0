"""
A concrete implementation of the IndexLookup contract backed by YAML index
files cached on the local filesystem.

The index configuration file lists every configured index by name:

    configs:
      - name: falcosecurity
        url: https://falcosecurity.github.io/falcoctl/index.yaml

and each index is cached next to it as `<name>.yaml`, a list of entries.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from artifactctl.internal.constants import INDEX_FILE_SUFFIX
from artifactctl.internal.errors import IndexConfigError
from artifactctl.internal.logging import get_logger
from artifactctl.kernel.artifacts import IndexEntry

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexConfigEntry:
    name: str
    url: str = ""


def _read_yaml(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_index_config(path: Path) -> List[IndexConfigEntry]:
    """
    Read the list of configured indexes. A missing or malformed file is fatal.
    """
    path = Path(path)
    if not path.exists():
        raise IndexConfigError(f"index configuration not found: {path}")

    try:
        data = _read_yaml(path) or {}
    except yaml.YAMLError as exc:
        raise IndexConfigError(f"cannot parse index configuration {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise IndexConfigError(f"index configuration {path} must be a mapping")

    configs = []
    for raw in data.get("configs") or []:
        if not isinstance(raw, dict) or not raw.get("name"):
            raise IndexConfigError(f"invalid index entry in {path}: {raw!r}")
        configs.append(IndexConfigEntry(name=raw["name"], url=raw.get("url", "")))
    return configs


def _entry_from_dict(raw: Dict[str, Any]) -> IndexEntry:
    return IndexEntry(
        name=raw["name"],
        registry=raw["registry"],
        repository=raw["repository"],
        type=raw.get("type", ""),
        description=raw.get("description", ""),
        home=raw.get("home", ""),
        keywords=tuple(raw.get("keywords") or ()),
        license=raw.get("license", ""),
        maintainers=tuple(raw.get("maintainers") or ()),
        sources=tuple(raw.get("sources") or ()),
    )


class Index:
    """
    A single named index: the entries of one index file.
    """

    def __init__(self, name: str):
        self.name = name
        self.entries: List[IndexEntry] = []

    def read(self, path: Path) -> None:
        try:
            data = _read_yaml(path) or []
        except (OSError, yaml.YAMLError) as exc:
            raise IndexConfigError(f"cannot load index {self.name}: {exc}") from exc

        if not isinstance(data, list):
            raise IndexConfigError(f"cannot load index {self.name}: expected a list of entries")

        try:
            self.entries = [_entry_from_dict(raw) for raw in data]
        except (KeyError, TypeError) as exc:
            raise IndexConfigError(f"cannot load index {self.name}: invalid entry ({exc})") from exc

    def __repr__(self) -> str:
        return f"<Index name={self.name} entries={len(self.entries)}>"


class MergedIndexes:
    """
    All configured indexes behind one lookup. When two indexes carry the same
    name, the one merged last wins.
    """

    def __init__(self):
        self._entry_by_name: Dict[str, IndexEntry] = {}
        self._index_by_name: Dict[str, str] = {}

    def merge(self, *indexes: Index) -> None:
        for index in indexes:
            for entry in index.entries:
                if entry.name in self._entry_by_name:
                    logger.debug(
                        "Index entry overridden",
                        name=entry.name,
                        previous=self.index_of(entry.name),
                        index=index.name,
                    )
                self._entry_by_name[entry.name] = entry
                self._index_by_name[entry.name] = index.name

    def entry_by_name(self, name: str) -> Optional[IndexEntry]:
        return self._entry_by_name.get(name)

    def index_of(self, name: str) -> Optional[str]:
        """Name of the index the entry was taken from."""
        return self._index_by_name.get(name)

    def __len__(self) -> int:
        return len(self._entry_by_name)


def load_merged_indexes(indexes_file: Path, index_dir: Optional[Path] = None) -> MergedIndexes:
    """
    Read every configured index and merge them, in configuration order.
    """
    indexes_file = Path(indexes_file)
    index_dir = Path(index_dir) if index_dir else indexes_file.parent

    all_indexes = []
    for config in load_index_config(indexes_file):
        name_yaml = f"{config.name}{INDEX_FILE_SUFFIX}"
        logger.debug("Loading index", index=name_yaml)
        index = Index(config.name)
        index.read(index_dir / name_yaml)
        all_indexes.append(index)

    merged = MergedIndexes()
    merged.merge(*all_indexes)
    logger.debug("All configured indexes have been merged", count=len(all_indexes), entries=len(merged))
    return merged
