"""Windows Package Manager (winget)."""

import re

from hostinstall.execution import ProcessResult

from .base import InstallOptions, PackageManager


class WingetManager(PackageManager):
    name = "winget"
    display_name = "winget"
    binary = "winget"
    install_hint = (
        "Install winget (App Installer): Add-AppxPackage -RegisterByFamilyName "
        "-MainPackage Microsoft.DesktopAppInstaller_8wekyb3d8bbwe"
    )
    windows_quoting = True

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        parts = [
            "winget",
            "install",
            "--exact",
            "--id",
            self.quote(package_id),
            "--accept-package-agreements",
            "--accept-source-agreements",
        ]
        if options.silent:
            parts.append("--silent")
        if options.version:
            parts += ["--version", self.quote(options.version)]
        if options.source:
            parts += ["--source", self.quote(options.source)]
        return " ".join(parts)

    def query_command(self, package_id: str) -> str:
        return f"winget list --exact --id {self.quote(package_id)} --accept-source-agreements"

    def uninstall_command(self, package_id: str) -> str:
        return f"winget uninstall --exact --id {self.quote(package_id)} --silent"

    def _find_row(self, result: ProcessResult, package_id: str) -> list[str] | None:
        if not result.ok:
            return None
        for line in result.stdout.splitlines():
            if package_id.lower() in line.lower():
                # Columns are padded with runs of spaces: Name, Id, Version, ...
                return re.split(r"\s{2,}", line.strip())
        return None

    def parse_installed(self, result: ProcessResult, package_id: str) -> bool:
        return self._find_row(result, package_id) is not None

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        row = self._find_row(result, package_id)
        if row is None or len(row) < 3:
            return None
        return row[2]
