"""Common contract for package-manager clients."""

import logging
import re
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass

from hostinstall.execution import EnvironmentDelta, Executor, ProcessResult

_logging = logging.getLogger(__name__)

VERSION_PATTERNS = [
    r"(\d+\.\d+\.\d+(?:[.\-+~][0-9A-Za-z.]+)?)",
    r"(\d+\.\d+)",
]


@dataclass(frozen=True)
class InstallOptions:
    """Options honoured by ``PackageManager.install`` where the ecosystem allows.

    silent: suppress interactive prompts
    version: pin to an exact version
    source: pick the catalog/repository when an id exists in several
    """

    silent: bool = True
    version: str | None = None
    source: str | None = None


def extract_version(output: str) -> str | None:
    """Pull the first dotted version number out of command output."""
    for pattern in VERSION_PATTERNS:
        match = re.search(pattern, output)
        if match:
            return match.group(1)

    stripped = output.strip()
    if re.match(r"^[\d.]+$", stripped):
        return stripped

    return None


class PackageManager(ABC):
    """One ecosystem's package manager, driven through an ``Executor``.

    Every public coroutine spawns at most one external process and keeps no
    state between calls; the package manager itself is the source of truth.
    """

    name: str = ""
    display_name: str = ""
    binary: str = ""
    install_hint: str = ""
    # Windows-side managers receive double-quoted ids; POSIX ones shell quoting.
    windows_quoting: bool = False
    supports_local_install: bool = False

    def __init__(self, executor: Executor):
        self.executor = executor

    def __repr__(self) -> str:
        return f"{type(self).__name__}(executor={self.executor!r})"

    def quote(self, value: str) -> str:
        if self.windows_quoting:
            return f'"{value}"'
        return shlex.quote(value)

    def ignore_option(self, option: str, value: object) -> None:
        _logging.debug(f"{self.display_name} ignores install option {option}={value!r}")

    @abstractmethod
    def install_command(self, package_id: str, options: InstallOptions) -> str:
        ...

    @abstractmethod
    def query_command(self, package_id: str) -> str:
        ...

    @abstractmethod
    def uninstall_command(self, package_id: str) -> str:
        ...

    def version_command(self, package_id: str) -> str:
        return self.query_command(package_id)

    def local_install_command(self, path: str) -> str | None:
        """Command installing a downloaded package file, if supported."""
        return None

    def parse_installed(self, result: ProcessResult, package_id: str) -> bool:
        return result.ok

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        if not result.ok:
            return None
        return extract_version(result.output)

    async def is_available(self) -> bool:
        return await self.executor.command_exists(self.binary)

    async def is_package_installed(self, package_id: str) -> bool:
        result = await self.executor.run(self.query_command(package_id))
        return self.parse_installed(result, package_id)

    async def package_version(self, package_id: str) -> str | None:
        result = await self.executor.run(self.version_command(package_id))
        return self.parse_version(result, package_id)

    async def install(
        self, package_id: str, options: InstallOptions | None = None
    ) -> ProcessResult:
        command = self.install_command(package_id, options or InstallOptions())
        return await self.executor.run(command, timeout=self.executor.install_timeout)

    async def install_local(self, path: str) -> ProcessResult:
        command = self.local_install_command(path)
        if command is None:
            return ProcessResult(
                1, "", f"{self.display_name} cannot install local package files"
            )
        return await self.executor.run(command, timeout=self.executor.install_timeout)

    async def uninstall(self, package_id: str) -> ProcessResult:
        return await self.executor.run(
            self.uninstall_command(package_id), timeout=self.executor.install_timeout
        )

    async def environment_delta(self) -> EnvironmentDelta:
        """Search-path changes a caller needs after installing through this manager."""
        return EnvironmentDelta()


__all__ = [
    "InstallOptions",
    "PackageManager",
    "extract_version",
]
