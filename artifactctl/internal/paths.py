import os
from pathlib import Path

from artifactctl.internal.constants import APP_NAME, INDEXES_FILE_NAME


def get_app_data_dir() -> Path:
    """
    Returns the application data directory.

    - ARTIFACTCTL_HOME, when set
    - Windows: %APPDATA%\\artifactctl
    - Linux/macOS: ~/.artifactctl
    """
    override = os.environ.get("ARTIFACTCTL_HOME")
    if override:
        path = Path(override)
    elif os.name == "nt":  # Windows
        base = os.environ.get("APPDATA", str(Path.home()))
        path = Path(base) / APP_NAME
    else:  # Linux / macOS
        path = Path.home() / f".{APP_NAME}"

    path.mkdir(parents=True, exist_ok=True)
    return path


def get_index_dir() -> Path:
    """
    Directory holding the cached copy of every configured index.
    """
    return get_app_data_dir()


def get_indexes_file() -> Path:
    return get_app_data_dir() / INDEXES_FILE_NAME


def get_log_file() -> Path:
    log_dir = get_app_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{APP_NAME}.log.json"


if __name__ == "__main__":
    print("App Data Dir:", get_app_data_dir())
    print("Index Dir:", get_index_dir())
    print("Indexes File:", get_indexes_file())
    print("Log File:", get_log_file())
