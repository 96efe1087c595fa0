import hashlib

import pytest
import requests
import yaml
from typer.testing import CliRunner

from artifactctl.adapters.archive import extract_tar_gz
from artifactctl.cli import reporter
from artifactctl.cli.main import app
from artifactctl.internal.constants import OCI_MANIFEST_MEDIA_TYPE, PLUGIN_CONFIG_MEDIA_TYPE
from tests.cli.live import active_live_displays
from tests.kernel.mocks import make_tar_gz

runner = CliRunner()

ARCHIVE = make_tar_gz({"libk8saudit.so": b"\x7fELF"})
ARCHIVE_DIGEST = "sha256:" + hashlib.sha256(ARCHIVE).hexdigest()

# --- Fixtures ---

@pytest.fixture
def app_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("ARTIFACTCTL_HOME", str(home))
    monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path / "docker"))
    (home / "indexes.yaml").write_text(yaml.safe_dump({
        "configs": [{"name": "falcosecurity", "url": "https://example.com/index.yaml"}],
    }))
    (home / "falcosecurity.yaml").write_text(yaml.safe_dump([{
        "name": "k8saudit",
        "type": "plugin",
        "registry": "ghcr.io",
        "repository": "falcosecurity/plugins/k8saudit",
    }]))
    return home

@pytest.fixture
def registry(requests_mock):
    requests_mock.get("https://ghcr.io/v2/", status_code=200)
    requests_mock.get(
        "https://ghcr.io/v2/falcosecurity/plugins/k8saudit/manifests/latest",
        json={
            "schemaVersion": 2,
            "mediaType": OCI_MANIFEST_MEDIA_TYPE,
            "config": {"mediaType": PLUGIN_CONFIG_MEDIA_TYPE, "digest": "sha256:cfg", "size": 2},
            "layers": [{
                "mediaType": "application/vnd.cncf.falco.plugin.layer.v1+tar.gz",
                "digest": ARCHIVE_DIGEST,
                "size": len(ARCHIVE),
                "annotations": {"org.opencontainers.image.title": "k8saudit.tar.gz"},
            }],
        },
    )
    requests_mock.get(f"https://ghcr.io/v2/falcosecurity/plugins/k8saudit/blobs/{ARCHIVE_DIGEST}", content=ARCHIVE)
    return requests_mock

def install_args(tmp_path, *refs):
    return [
        "install", *refs,
        "--plugins-dir", str(tmp_path / "plugins"),
        "--rulesfiles-dir", str(tmp_path / "rules"),
    ]

# --- Tests ---

@pytest.mark.parametrize("command, expected_output_substring", [
    (["--help"], "install"),
    (["install", "--help"], "--plugins-dir"),
    (["index", "--help"], "list"),
    (["version", "--help"], "version"),
])
def test_help_output(command, expected_output_substring):
    result = runner.invoke(app, command)
    assert result.exit_code == 0
    assert expected_output_substring in result.stdout


def test_install_requires_at_least_one_ref(app_home):
    result = runner.invoke(app, ["install"])
    assert result.exit_code != 0


def test_install_indexed_plugin(app_home, registry, tmp_path):
    result = runner.invoke(app, install_args(tmp_path, "k8saudit"))

    assert result.exit_code == 0, result.stdout
    assert "Preparing to pull" in result.stdout
    assert "Artifact successfully installed" in result.stdout
    assert (tmp_path / "plugins" / "libk8saudit.so").read_bytes() == b"\x7fELF"


def test_download_bar_is_gone_before_extraction(app_home, registry, tmp_path, mocker):
    live_during_extraction = []

    def extract(stream, dest_dir):
        live_during_extraction.append(active_live_displays(reporter.console))
        extract_tar_gz(stream, dest_dir)

    mocker.patch("artifactctl.cli.commands.install.extract_tar_gz", side_effect=extract)

    result = runner.invoke(app, install_args(tmp_path, "k8saudit"))

    assert result.exit_code == 0, result.stdout
    assert live_during_extraction == [1]  # only the extraction spinner
    assert active_live_displays(reporter.console) == 0


def test_install_unknown_name_warns_and_succeeds(app_home, requests_mock, tmp_path):
    result = runner.invoke(app, install_args(tmp_path, "not-indexed"))

    assert result.exit_code == 0
    assert "cannot find not-indexed among the configured indexes" in result.stdout
    assert not requests_mock.called


def test_install_unreachable_registry_fails(app_home, requests_mock, tmp_path):
    requests_mock.get("https://ghcr.io/v2/", exc=requests.exceptions.ConnectionError("refused"))

    result = runner.invoke(app, install_args(tmp_path, "k8saudit"))

    assert result.exit_code == 1
    assert "unable to connect to registry 'ghcr.io'" in result.stdout
    assert not (tmp_path / "plugins").exists()


def test_install_malformed_reference_fails(app_home, tmp_path):
    result = runner.invoke(app, install_args(tmp_path, "myrules:v1"))

    assert result.exit_code == 1
    assert "cannot extract registry name" in result.stdout


def test_install_without_index_config_fails(app_home, tmp_path):
    (app_home / "indexes.yaml").unlink()

    result = runner.invoke(app, install_args(tmp_path, "k8saudit"))

    assert result.exit_code == 1
    assert "index configuration not found" in result.stdout


def test_index_list(app_home):
    result = runner.invoke(app, ["index", "list"])

    assert result.exit_code == 0
    assert "falcosecurity" in result.stdout


def test_index_list_empty(app_home):
    (app_home / "indexes.yaml").write_text("configs: []\n")

    result = runner.invoke(app, ["index", "list"])

    assert result.exit_code == 0
    assert "No indexes configured" in result.stdout


@pytest.mark.parametrize("args, expected", [
    (["version"], "artifactctl version: 1.2.3 (linux/amd64)"),
    (["version", "-o", "json"], '"platform": "linux/amd64"'),
    (["version", "--output", "yaml"], "version: 1.2.3"),
])
def test_version_output(mocker, args, expected):
    mocker.patch("importlib.metadata.version", return_value="1.2.3")
    mocker.patch("artifactctl.runtime.system.get_os", return_value="linux")
    mocker.patch("artifactctl.runtime.system.get_arch", return_value="amd64")

    result = runner.invoke(app, args)

    assert result.exit_code == 0
    assert expected in result.stdout


def test_version_rejects_unknown_format():
    result = runner.invoke(app, ["version", "-o", "xml"])
    assert result.exit_code == 2
