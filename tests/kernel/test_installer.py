from pathlib import Path

import pytest

from artifactctl.adapters.archive import extract_tar_gz
from artifactctl.internal.errors import ExtractionError, UnknownArtifactKindError
from artifactctl.kernel.artifacts import InstallDestinations, PullResult
from artifactctl.kernel.installer import ArtifactInstaller
from tests.kernel.mocks import RecordingReporter, make_tar_gz

# --- Fixtures ---

@pytest.fixture
def workspace(tmp_path):
    path = tmp_path / "workspace"
    path.mkdir()
    return path

@pytest.fixture
def destinations(tmp_path):
    return InstallDestinations(plugins_dir=tmp_path / "plugins", rulesfiles_dir=tmp_path / "rules")

@pytest.fixture
def reporter():
    return RecordingReporter()

@pytest.fixture
def installer(destinations, reporter):
    return ArtifactInstaller(destinations, extract_tar_gz, reporter)

# --- Tests ---

@pytest.mark.parametrize("kind, dir_attr", [
    ("plugin", "plugins_dir"),
    ("rulesfile", "rulesfiles_dir"),
])
def test_install_extracts_to_kind_directory_and_removes_archive(installer, workspace, destinations, reporter, kind, dir_attr):
    """The archive is consumed and its contents land in the directory for its kind."""
    (workspace / "artifact.tar.gz").write_bytes(make_tar_gz({"content.yaml": b"rules: []"}))

    dest = installer.install(PullResult(kind=kind, filename="artifact.tar.gz"), workspace)

    expected_dir = getattr(destinations, dir_attr)
    assert dest == expected_dir
    assert (expected_dir / "content.yaml").read_bytes() == b"rules: []"
    assert not (workspace / "artifact.tar.gz").exists()
    assert reporter.successes == [f"Artifact successfully installed in {str(expected_dir)!r}"]
    assert len(reporter.working_messages) == 1


def test_unknown_kind_raises_before_touching_archive(installer, workspace, destinations, reporter):
    (workspace / "artifact.tar.gz").write_bytes(make_tar_gz({"a": b"a"}))

    with pytest.raises(UnknownArtifactKindError):
        installer.install(PullResult(kind="application/vnd.unknown", filename="artifact.tar.gz"), workspace)

    assert (workspace / "artifact.tar.gz").exists()
    assert reporter.successes == []


def test_missing_archive_raises_os_error(installer, workspace):
    with pytest.raises(FileNotFoundError):
        installer.install(PullResult(kind="plugin", filename="missing.tar.gz"), workspace)


def test_extraction_failure_keeps_archive_and_closes_it(installer, workspace, reporter, mocker):
    """A corrupt archive aborts the install; the file handle is released."""
    archive = workspace / "artifact.tar.gz"
    archive.write_bytes(b"not a gzip stream")
    opened = []
    real_open = open

    def tracking_open(*args, **kwargs):
        f = real_open(*args, **kwargs)
        opened.append(f)
        return f

    mocker.patch("artifactctl.kernel.installer.open", side_effect=tracking_open, create=True)

    with pytest.raises(ExtractionError):
        installer.install(PullResult(kind="plugin", filename="artifact.tar.gz"), workspace)

    assert opened and opened[0].closed
    assert archive.exists()
    assert reporter.successes == []


def test_archive_removal_failure_is_an_error(installer, workspace, destinations, reporter, mocker):
    """Deleting the downloaded archive is part of the install, not best-effort cleanup."""
    (workspace / "artifact.tar.gz").write_bytes(make_tar_gz({"plugin.so": b"\x7fELF"}))
    mocker.patch.object(Path, "unlink", side_effect=PermissionError("read-only workspace"))

    with pytest.raises(PermissionError):
        installer.install(PullResult(kind="plugin", filename="artifact.tar.gz"), workspace)

    assert (destinations.plugins_dir / "plugin.so").exists()
    assert reporter.successes == []
