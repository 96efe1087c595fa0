import logging

import pytest

from artifactctl.internal import logging as app_logging


@pytest.fixture(autouse=True)
def isolated_app_home(tmp_path_factory, monkeypatch):
    """
    Keep every test away from the real ~/.artifactctl and ~/.docker.
    """
    home = tmp_path_factory.mktemp("artifactctl-home")
    monkeypatch.setenv("ARTIFACTCTL_HOME", str(home))
    monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path_factory.mktemp("docker-config")))
    return home


@pytest.fixture(autouse=True)
def restore_root_logging(monkeypatch):
    """
    CLI invocations configure logging once per process; undo that after each test.
    """
    saved_handlers = logging.root.handlers[:]
    saved_level = logging.root.level
    monkeypatch.setattr(app_logging, "_LOGGING_CONFIGURED", app_logging._LOGGING_CONFIGURED)
    yield
    for handler in logging.root.handlers[:]:
        if handler not in saved_handlers:
            handler.close()
            logging.root.removeHandler(handler)
    logging.root.setLevel(saved_level)
