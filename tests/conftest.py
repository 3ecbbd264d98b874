"""Pytest fixtures and utilities for hostinstall tests."""

import json
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from hostinstall.execution import ProcessResult
from hostinstall.platform import Architecture, PlatformCategory, PlatformDescriptor


class FakeExecutor:
    """Executor double that records every call and answers from canned data.

    ``commands`` and ``paths`` are what the fake host "has". Responses are
    matched by substring against the command line, first match wins; a
    response may declare commands/paths that appear once it has run, which is
    how tests model an install that actually puts something on disk.
    """

    def __init__(
        self,
        commands: set[str] | None = None,
        paths: set[str] | None = None,
        default: ProcessResult | None = None,
    ):
        self.timeout = 30
        self.install_timeout = 600
        self.commands = set(commands or ())
        self.paths = set(paths or ())
        self.default = default or ProcessResult(1, "", "no canned response")
        self.responses: list[tuple[str, ProcessResult, set[str], set[str]]] = []
        self.ran: list[str] = []
        self.timeouts: list[int | None] = []
        self.queries: list[tuple[str, str]] = []

    def respond(
        self,
        pattern: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        creates_commands: set[str] | None = None,
        creates_paths: set[str] | None = None,
    ) -> "FakeExecutor":
        self.responses.append(
            (
                pattern,
                ProcessResult(exit_code, stdout, stderr),
                set(creates_commands or ()),
                set(creates_paths or ()),
            )
        )
        return self

    async def run(self, command: str, timeout: int | None = None) -> ProcessResult:
        self.ran.append(command)
        self.timeouts.append(timeout)
        for pattern, result, new_commands, new_paths in self.responses:
            if pattern in command:
                if result.ok:
                    self.commands |= new_commands
                    self.paths |= new_paths
                return result
        return self.default

    async def command_exists(self, name: str) -> bool:
        self.queries.append(("command", name))
        return name in self.commands

    async def path_exists(self, path: str) -> bool:
        self.queries.append(("path", path))
        return path in self.paths

    def ran_matching(self, pattern: str) -> list[str]:
        return [c for c in self.ran if pattern in c]


def make_platform(
    category: PlatformCategory,
    architecture: Architecture = Architecture.X86_64,
    desktop_available: bool = True,
    distro: str | None = None,
) -> PlatformDescriptor:
    return PlatformDescriptor(
        category=category,
        architecture=architecture,
        desktop_available=desktop_available,
        distro=distro,
    )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def platform_factory() -> Callable[..., PlatformDescriptor]:
    return make_platform


@pytest.fixture
def macos() -> PlatformDescriptor:
    return make_platform(PlatformCategory.MACOS, Architecture.ARM64)


@pytest.fixture
def debian() -> PlatformDescriptor:
    return make_platform(PlatformCategory.DEBIAN, distro="ubuntu")


@pytest.fixture
def debian_headless() -> PlatformDescriptor:
    return make_platform(PlatformCategory.DEBIAN, desktop_available=False, distro="debian")


@pytest.fixture
def rpm() -> PlatformDescriptor:
    return make_platform(PlatformCategory.RPM, distro="fedora")


@pytest.fixture
def wsl() -> PlatformDescriptor:
    return make_platform(PlatformCategory.WSL, distro="ubuntu")


@pytest.fixture
def gitbash() -> PlatformDescriptor:
    return make_platform(PlatformCategory.GITBASH)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def fresh_catalog_cache():
    """Keep cached catalogs from leaking between tests."""
    from hostinstall.catalog import clear_cache

    clear_cache()
    yield
    clear_cache()


SAMPLE_CATALOG = {
    "targets": {
        "jq": {
            "display_name": "jq",
            "description": "JSON processor",
            "handlers": {
                "macos": {
                    "probe": [{"command": "jq"}, {"package": "brew", "id": "jq"}],
                    "channels": [{"manager": "brew", "id": "jq"}],
                },
                "debian,wsl": {
                    "probe": [{"command": "jq"}],
                    "channels": [{"manager": "apt", "id": "jq"}],
                    "version": "jq --version",
                },
            },
        },
        "unzip": {
            "display_name": "unzip",
            "description": "Zip extraction",
            "handlers": {
                "debian": {
                    "probe": [{"command": "unzip"}],
                    "channels": [{"manager": "apt", "id": "unzip"}],
                },
            },
        },
        "terraform": {
            "display_name": "Terraform",
            "description": "Infrastructure as code",
            "requires": ["unzip"],
            "handlers": {
                "debian": {
                    "probe": [{"command": "terraform"}, {"path": "/opt/bin/terraform"}],
                    "channels": [
                        {"manager": "snap-classic", "id": "terraform"},
                        {
                            "archive": "zip",
                            "url": "https://example.com/terraform.zip",
                            "destination": "/opt/bin",
                        },
                    ],
                },
            },
        },
        "chrome": {
            "display_name": "Google Chrome",
            "description": "Web browser",
            "requires_desktop": True,
            "handlers": {
                "debian": {
                    "probe": [{"command": "google-chrome"}],
                    "channels": [{"manager": "apt", "id": "google-chrome-stable"}],
                    "architectures": ["x86_64"],
                    "notes": ["Sign in after first launch."],
                },
                "wsl": {
                    "host": True,
                    "probe": [
                        {"path": "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe"},
                        {"package": "winget", "id": "Google.Chrome"},
                    ],
                    "channels": [
                        {"manager": "winget", "id": "Google.Chrome"},
                        {"manager": "choco", "id": "googlechrome"},
                    ],
                },
            },
        },
    }
}


@pytest.fixture
def sample_catalog() -> dict:
    return json.loads(json.dumps(SAMPLE_CATALOG))


@pytest.fixture
def catalog_file(temp_dir: Path, sample_catalog: dict) -> Path:
    path = temp_dir / "targets.json"
    path.write_text(json.dumps(sample_catalog, indent=2))
    return path
