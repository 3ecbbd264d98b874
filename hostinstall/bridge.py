"""Host-delegation bridge from WSL or Git Bash into the Windows host.

``HostBridge`` satisfies the same ``Executor`` protocol as ``LocalExecutor``,
so package-manager clients, probes and channels bound to it run unchanged on
the outer Windows host. Every call crosses the interop boundary as one
``powershell.exe -NoProfile -Command "<cmd>"`` process.
"""

import logging
import re
import shlex

from hostinstall.execution import Executor, ProcessResult

_logging = logging.getLogger(__name__)

HOST_SHELL = "powershell.exe"

# exit code reported when the interop shell cannot be found
BRIDGE_UNAVAILABLE = 127


def ps_single_quote(value: str) -> str:
    """Quote a literal for PowerShell (no variable expansion)."""
    return "'" + value.replace("'", "''") + "'"


def ps_double_quote(value: str) -> str:
    """Quote a string for PowerShell, keeping ``$env:`` expansion."""
    escaped = value.replace("`", "``").replace('"', '`"')
    return f'"{escaped}"'


def to_powershell_path(path: str) -> str:
    """Rewrite cmd-style ``%VAR%`` references as ``$env:VAR``."""
    return re.sub(r"%(\w+)%", r"$env:\1", path)


class HostBridge:
    is_powershell = True

    def __init__(self, local: Executor, shell: str = HOST_SHELL):
        self.local = local
        self.shell = shell

    def __repr__(self) -> str:
        return f"HostBridge(shell={self.shell!r})"

    @property
    def timeout(self) -> int:
        return self.local.timeout

    @property
    def install_timeout(self) -> int:
        return self.local.install_timeout

    def remediation(self) -> list[str]:
        return [
            f"Make sure {self.shell} is reachable from this shell",
            "WSL: enable interop in /etc/wsl.conf ([interop] enabled=true, appendWindowsPath=true) and restart with 'wsl --shutdown'",
            "Git Bash: add C:\\Windows\\System32\\WindowsPowerShell\\v1.0 to PATH",
        ]

    async def is_available(self) -> bool:
        return await self.local.command_exists(self.shell)

    def wrap(self, command: str) -> str:
        return f"{self.shell} -NoProfile -NonInteractive -Command {shlex.quote(command)}"

    async def run(self, command: str, timeout: int | None = None) -> ProcessResult:
        if not await self.is_available():
            _logging.debug(f"Host shell {self.shell} not found; cannot run: {command}")
            return ProcessResult(
                BRIDGE_UNAVAILABLE, "", f"{self.shell} is not available from this shell"
            )
        _logging.debug(f"Delegating to Windows host: {command}")
        return await self.local.run(self.wrap(command), timeout=timeout)

    async def command_exists(self, name: str) -> bool:
        result = await self.run(
            f"if (Get-Command {ps_single_quote(name)} -ErrorAction SilentlyContinue) "
            "{ exit 0 } else { exit 1 }"
        )
        return result.ok

    async def path_exists(self, path: str) -> bool:
        result = await self.run(f"Test-Path {ps_double_quote(to_powershell_path(path))}")
        return result.ok and result.stdout.strip() == "True"


__all__ = [
    "BRIDGE_UNAVAILABLE",
    "HOST_SHELL",
    "HostBridge",
    "ps_double_quote",
    "ps_single_quote",
    "to_powershell_path",
]
