# Platform detection, in the os/arch vocabulary used by OCI image indexes
import platform

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
}

def get_os() -> str:
    return platform.system().lower()

def get_arch() -> str:
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine)

if __name__ == "__main__":
    print(f"OS: {get_os()}")
    print(f"Architecture: {get_arch()}")
