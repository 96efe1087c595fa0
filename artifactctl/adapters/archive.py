import os
import shutil
import tarfile
from pathlib import Path
from typing import BinaryIO

from artifactctl.internal.errors import ExtractionError
from artifactctl.internal.logging import get_logger

logger = get_logger(__name__)


def _safe_target(dest_dir: Path, member_name: str) -> Path:
    target = (dest_dir / member_name).resolve()
    if target != dest_dir and dest_dir not in target.parents:
        raise ExtractionError(f"archive member {member_name!r} escapes destination {str(dest_dir)!r}")
    return target


def extract_tar_gz(stream: BinaryIO, dest_dir: Path) -> None:
    """
    Unpack a gzip-compressed tar stream into dest_dir.

    Only directories and regular files are accepted; links, devices and
    members pointing outside dest_dir raise ExtractionError.
    """
    dest_dir = Path(dest_dir).resolve()
    dest_dir.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(fileobj=stream, mode="r|gz") as tar:
            for member in tar:
                target = _safe_target(dest_dir, member.name)

                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                elif member.isfile():
                    target.parent.mkdir(parents=True, exist_ok=True)
                    source = tar.extractfile(member)
                    with open(target, "wb") as out:
                        shutil.copyfileobj(source, out)
                    os.chmod(target, member.mode & 0o777)
                else:
                    raise ExtractionError(f"unsupported member type in archive: {member.name!r}")

                logger.debug("Extracted archive member", name=member.name, dest=str(target))
    except (tarfile.TarError, EOFError) as exc:
        raise ExtractionError(f"cannot extract archive into {str(dest_dir)!r}: {exc}") from exc
