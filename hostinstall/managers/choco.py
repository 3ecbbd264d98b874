"""Chocolatey, the secondary Windows package manager."""

from hostinstall.bridge import ps_single_quote
from hostinstall.execution import EnvironmentDelta, ProcessResult

from .base import InstallOptions, PackageManager

CHOCO_HOME = r"C:\ProgramData\chocolatey"
CHOCO_BIN = CHOCO_HOME + r"\bin"
CHOCO_EXE = CHOCO_BIN + r"\choco.exe"

# printed by the PowerShell location check when only CHOCO_EXE exists
_FALLBACK_MARKER = "fallback"


class ChocolateyManager(PackageManager):
    """Chocolatey client.

    A fresh Chocolatey install is often not yet on ``PATH`` in the shell that
    installed it. When ``choco`` only exists at its well-known location the
    client calls it by full path and reports an ``EnvironmentDelta`` that
    prepends the bin directory.

    On a local executor the lookup is in-process (``shutil.which`` and
    ``os.path``). Through a PowerShell executor every lookup would be a
    process of its own, so the fallback is folded into the one script that
    runs the command.
    """

    name = "choco"
    display_name = "Chocolatey"
    binary = "choco"
    install_hint = (
        "Install Chocolatey (elevated PowerShell): Set-ExecutionPolicy Bypass -Scope Process -Force; "
        "iex ((New-Object System.Net.WebClient).DownloadString('https://community.chocolatey.org/install.ps1'))"
    )
    windows_quoting = True

    @property
    def _in_powershell(self) -> bool:
        return getattr(self.executor, "is_powershell", False)

    def _lookup(self) -> str:
        return f"(Get-Command {self.binary} -ErrorAction SilentlyContinue)"

    def _script(self, command: str) -> str:
        arguments = command[len(self.binary):]
        return (
            f"$choco = {self._lookup()}.Source; "
            f"if (-not $choco) {{ $choco = {ps_single_quote(CHOCO_EXE)} }}; "
            f"& $choco{arguments}"
        )

    async def _on_path(self) -> bool:
        return await self.executor.command_exists(self.binary)

    async def is_available(self) -> bool:
        if self._in_powershell:
            result = await self.executor.run(
                f"if ({self._lookup()} -or (Test-Path {ps_single_quote(CHOCO_EXE)})) "
                "{ exit 0 } else { exit 1 }"
            )
            return result.ok
        if await self._on_path():
            return True
        return await self.executor.path_exists(CHOCO_EXE)

    async def _uses_fallback(self) -> bool:
        if self._in_powershell:
            result = await self.executor.run(
                f"if (-not {self._lookup()} -and (Test-Path {ps_single_quote(CHOCO_EXE)})) "
                f"{{ '{_FALLBACK_MARKER}' }}"
            )
            return result.ok and result.stdout.strip() == _FALLBACK_MARKER
        if await self._on_path():
            return False
        return await self.executor.path_exists(CHOCO_EXE)

    async def environment_delta(self) -> EnvironmentDelta:
        if not await self._uses_fallback():
            return EnvironmentDelta()
        return EnvironmentDelta(
            prepend_path=(CHOCO_BIN,),
            variables={"ChocolateyInstall": CHOCO_HOME},
        )

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        parts = [self.binary, "install", self.quote(package_id)]
        if options.silent:
            parts += ["-y", "--no-progress"]
        if options.version:
            parts += ["--version", self.quote(options.version)]
        if options.source:
            parts += ["--source", self.quote(options.source)]
        return " ".join(parts)

    def query_command(self, package_id: str) -> str:
        return f"{self.binary} list --exact --limit-output {self.quote(package_id)}"

    def uninstall_command(self, package_id: str) -> str:
        return f"{self.binary} uninstall -y {self.quote(package_id)}"

    async def _run_resolved(self, command: str, timeout: int | None = None) -> ProcessResult:
        if self._in_powershell:
            command = self._script(command)
        elif not await self._on_path():
            command = f'"{CHOCO_EXE}"' + command[len(self.binary):]
        return await self.executor.run(command, timeout=timeout)

    async def is_package_installed(self, package_id: str) -> bool:
        result = await self._run_resolved(self.query_command(package_id))
        return self.parse_installed(result, package_id)

    async def package_version(self, package_id: str) -> str | None:
        result = await self._run_resolved(self.version_command(package_id))
        return self.parse_version(result, package_id)

    async def install(
        self, package_id: str, options: InstallOptions | None = None
    ) -> ProcessResult:
        command = self.install_command(package_id, options or InstallOptions())
        return await self._run_resolved(command, timeout=self.executor.install_timeout)

    async def uninstall(self, package_id: str) -> ProcessResult:
        return await self._run_resolved(
            self.uninstall_command(package_id), timeout=self.executor.install_timeout
        )

    def _find_entry(self, result: ProcessResult, package_id: str) -> list[str] | None:
        # --limit-output prints "id|version" per package
        if not result.ok:
            return None
        for line in result.stdout.splitlines():
            fields = line.strip().split("|")
            if len(fields) >= 2 and fields[0].lower() == package_id.lower():
                return fields
        return None

    def parse_installed(self, result: ProcessResult, package_id: str) -> bool:
        return self._find_entry(result, package_id) is not None

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        entry = self._find_entry(result, package_id)
        return entry[1] if entry else None
