import pytest

from artifactctl.runtime import system

@pytest.mark.parametrize("machine, expected", [
    ("x86_64", "amd64"),
    ("AMD64", "amd64"),
    ("aarch64", "arm64"),
    ("arm64", "arm64"),
    ("armv7l", "arm"),
    ("i686", "386"),
    ("riscv64", "riscv64"),
])
def test_get_arch_uses_oci_names(mocker, machine, expected):
    mocker.patch("platform.machine", return_value=machine)
    assert system.get_arch() == expected


@pytest.mark.parametrize("name, expected", [("Linux", "linux"), ("Darwin", "darwin"), ("Windows", "windows")])
def test_get_os_is_lower_case(mocker, name, expected):
    mocker.patch("platform.system", return_value=name)
    assert system.get_os() == expected
