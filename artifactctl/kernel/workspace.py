import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from artifactctl.internal.constants import APP_NAME
from artifactctl.internal.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def scratch_workspace(prefix: str = APP_NAME) -> Iterator[Path]:
    """
    Create a private temporary directory for one batch run.

    The directory and everything in it is removed when the block exits,
    whether it returns normally or raises.
    """
    tmp_dir = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created scratch workspace", path=str(tmp_dir))
    try:
        yield tmp_dir
    finally:
        shutil.rmtree(tmp_dir)
        logger.debug("Removed scratch workspace", path=str(tmp_dir))
