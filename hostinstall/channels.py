"""Install channels: the mechanisms that put a target's bits onto disk."""

import logging
import os
import shlex
import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from hostinstall.bridge import HostBridge
from hostinstall.execution import EnvironmentDelta, Executor, ProcessResult
from hostinstall.managers import InstallOptions, PackageManager

_logging = logging.getLogger(__name__)

ARCHIVE_FORMATS = ("binary", "tar.gz", "zip")


class ChannelKind(Enum):
    PACKAGE_MANAGER = "package-manager"
    DOWNLOAD_PACKAGE = "download-package"
    ARCHIVE_EXTRACT = "archive-extract"
    HOST_DELEGATED = "host-delegated"


@dataclass(frozen=True)
class MissingPrerequisite:
    name: str
    message: str
    remediation: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChannelRun:
    result: ProcessResult
    env_delta: EnvironmentDelta = field(default_factory=EnvironmentDelta)


class InstallChannel(ABC):
    kind: ChannelKind

    @abstractmethod
    def describe(self) -> str:
        ...

    @abstractmethod
    async def check_prerequisite(self) -> MissingPrerequisite | None:
        ...

    @abstractmethod
    async def execute(self, options: InstallOptions) -> ChannelRun:
        ...

    def remediation(self) -> list[str]:
        """Manual follow-up steps when this channel's install step fails."""
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


async def _require_command(executor: Executor, name: str, hint: str) -> MissingPrerequisite | None:
    if await executor.command_exists(name):
        return None
    return MissingPrerequisite(name, f"{name} is not installed", [hint])


class PackageManagerChannel(InstallChannel):
    kind = ChannelKind.PACKAGE_MANAGER

    def __init__(self, manager: PackageManager, package_id: str):
        self.manager = manager
        self.package_id = package_id

    def describe(self) -> str:
        return f"{self.manager.display_name} ({self.package_id})"

    async def check_prerequisite(self) -> MissingPrerequisite | None:
        if await self.manager.is_available():
            return None
        return MissingPrerequisite(
            self.manager.display_name,
            f"{self.manager.display_name} is not installed",
            [self.manager.install_hint],
        )

    async def execute(self, options: InstallOptions) -> ChannelRun:
        result = await self.manager.install(self.package_id, options)
        if not result.ok:
            return ChannelRun(result)
        return ChannelRun(result, await self.manager.environment_delta())

    def remediation(self) -> list[str]:
        return [
            f"Retry manually: {self.manager.install_command(self.package_id, InstallOptions(silent=False))}"
        ]


class HostDelegatedChannel(PackageManagerChannel):
    """A Windows package manager reached through the host bridge."""

    kind = ChannelKind.HOST_DELEGATED

    def __init__(self, manager: PackageManager, package_id: str, bridge: HostBridge):
        super().__init__(manager, package_id)
        self.bridge = bridge

    def describe(self) -> str:
        return f"{super().describe()} on the Windows host"

    async def check_prerequisite(self) -> MissingPrerequisite | None:
        if not await self.bridge.is_available():
            return MissingPrerequisite(
                self.bridge.shell,
                f"{self.bridge.shell} is not reachable, cannot delegate to the Windows host",
                self.bridge.remediation(),
            )
        missing = await super().check_prerequisite()
        if missing is None:
            return None
        return MissingPrerequisite(
            missing.name,
            f"{missing.message} on the Windows host",
            missing.remediation,
        )

    def remediation(self) -> list[str]:
        command = self.manager.install_command(
            self.package_id, InstallOptions(silent=False)
        )
        return [f"Retry from a Windows terminal: {command}"]


class DownloadPackageChannel(InstallChannel):
    """Download a package file with curl and hand it to the local package manager."""

    kind = ChannelKind.DOWNLOAD_PACKAGE

    def __init__(self, url: str, installer: PackageManager, filename: str, executor: Executor):
        self.url = url
        self.installer = installer
        self.filename = filename
        self.executor = executor

    def describe(self) -> str:
        return f"download {self.filename} + {self.installer.display_name}"

    async def check_prerequisite(self) -> MissingPrerequisite | None:
        missing = await _require_command(
            self.executor, "curl", "Install curl with your system package manager"
        )
        if missing:
            return missing
        if await self.installer.is_available():
            return None
        return MissingPrerequisite(
            self.installer.display_name,
            f"{self.installer.display_name} is not installed",
            [self.installer.install_hint],
        )

    async def execute(self, options: InstallOptions) -> ChannelRun:
        workdir = tempfile.mkdtemp(prefix="hostinstall-")
        try:
            target = os.path.join(workdir, self.filename)
            download = await self.executor.run(
                f"curl -fsSL -o {shlex.quote(target)} {shlex.quote(self.url)}",
                timeout=self.executor.install_timeout,
            )
            if not download.ok:
                return ChannelRun(download)
            return ChannelRun(await self.installer.install_local(target))
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def remediation(self) -> list[str]:
        return [
            f"Download {self.url} manually and install it: "
            f"{self.installer.local_install_command(self.filename)}"
        ]


class ArchiveChannel(InstallChannel):
    """Download a release archive (or bare binary) and unpack it into a directory."""

    kind = ChannelKind.ARCHIVE_EXTRACT

    def __init__(
        self,
        url: str,
        archive_format: str,
        destination: str,
        executor: Executor,
        filename: str | None = None,
        search_path: str | None = None,
    ):
        if archive_format not in ARCHIVE_FORMATS:
            raise ValueError(
                f"Invalid archive format '{archive_format}'. Must be one of: {', '.join(ARCHIVE_FORMATS)}"
            )
        if archive_format == "binary" and not filename:
            raise ValueError("binary downloads need a filename")
        self.url = url
        self.archive_format = archive_format
        self.destination = destination
        self.filename = filename
        self.executor = executor
        self.search_path = search_path

    @property
    def resolved_destination(self) -> str:
        return os.path.expandvars(os.path.expanduser(self.destination))

    def describe(self) -> str:
        return f"{self.archive_format} archive into {self.destination}"

    def _tools(self) -> list[str]:
        tools = ["curl"]
        if self.archive_format == "tar.gz":
            tools.append("tar")
        elif self.archive_format == "zip":
            tools.append("unzip")
        return tools

    async def check_prerequisite(self) -> MissingPrerequisite | None:
        for tool in self._tools():
            missing = await _require_command(
                self.executor, tool, f"Install {tool} with your system package manager"
            )
            if missing:
                return missing
        return None

    def _command(self) -> str:
        dest = shlex.quote(self.resolved_destination)
        url = shlex.quote(self.url)
        if self.archive_format == "binary":
            target = shlex.quote(os.path.join(self.resolved_destination, self.filename))
            return f"mkdir -p {dest} && curl -fsSL -o {target} {url} && chmod +x {target}"
        if self.archive_format == "tar.gz":
            return f"mkdir -p {dest} && curl -fsSL {url} | tar -xz -C {dest}"
        archive = shlex.quote(os.path.join(tempfile.gettempdir(), f"hostinstall-{os.getpid()}.zip"))
        return (
            f"mkdir -p {dest} && curl -fsSL -o {archive} {url} && "
            f"unzip -o -q {archive} -d {dest}; status=$?; rm -f {archive}; exit $status"
        )

    def _delta(self) -> EnvironmentDelta:
        search_path = self.search_path
        if search_path is None:
            search_path = os.environ.get("PATH", "")
        destination = self.resolved_destination
        if destination in search_path.split(os.pathsep):
            return EnvironmentDelta()
        return EnvironmentDelta(prepend_path=(destination,))

    async def execute(self, options: InstallOptions) -> ChannelRun:
        if options.version:
            _logging.debug(f"Archive download of {self.url} ignores version={options.version!r}")
        result = await self.executor.run(self._command(), timeout=self.executor.install_timeout)
        if not result.ok:
            return ChannelRun(result)
        return ChannelRun(result, self._delta())

    def remediation(self) -> list[str]:
        return [f"Download {self.url} and unpack it into {self.destination}"]


__all__ = [
    "ARCHIVE_FORMATS",
    "ArchiveChannel",
    "ChannelKind",
    "ChannelRun",
    "DownloadPackageChannel",
    "HostDelegatedChannel",
    "InstallChannel",
    "MissingPrerequisite",
    "PackageManagerChannel",
]
