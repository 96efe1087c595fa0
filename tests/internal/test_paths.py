from pathlib import Path

from artifactctl.internal import paths


def test_app_home_override(tmp_path, monkeypatch):
    home = tmp_path / "custom-home"
    monkeypatch.setenv("ARTIFACTCTL_HOME", str(home))

    assert paths.get_app_data_dir() == home
    assert home.is_dir()
    assert paths.get_indexes_file() == home / "indexes.yaml"
    assert paths.get_index_dir() == home


def test_default_home_is_dot_directory(tmp_path, monkeypatch, mocker):
    monkeypatch.delenv("ARTIFACTCTL_HOME", raising=False)
    mocker.patch.object(paths.os, "name", "posix")
    mocker.patch.object(Path, "home", return_value=tmp_path)

    assert paths.get_app_data_dir() == tmp_path / ".artifactctl"


def test_log_file_directory_is_created(isolated_app_home):
    log_file = paths.get_log_file()

    assert log_file == isolated_app_home / "logs" / "artifactctl.log.json"
    assert log_file.parent.is_dir()
