"""Mac App Store client (``mas``)."""

import re

from hostinstall.execution import ProcessResult

from .base import InstallOptions, PackageManager


class MasManager(PackageManager):
    """Mac App Store apps are addressed by their numeric store id."""

    name = "mas"
    display_name = "Mac App Store"
    binary = "mas"
    install_hint = "Install the Mac App Store CLI: brew install mas"

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        if options.version:
            self.ignore_option("version", options.version)
        if options.source:
            self.ignore_option("source", options.source)
        return f"mas install {self.quote(package_id)}"

    def query_command(self, package_id: str) -> str:
        return "mas list"

    def uninstall_command(self, package_id: str) -> str:
        return f"sudo mas uninstall {self.quote(package_id)}"

    def _find_line(self, result: ProcessResult, package_id: str) -> str | None:
        if not result.ok:
            return None
        pattern = re.compile(rf"^\s*{re.escape(package_id)}\s")
        for line in result.stdout.splitlines():
            if pattern.match(line):
                return line
        return None

    def parse_installed(self, result: ProcessResult, package_id: str) -> bool:
        return self._find_line(result, package_id) is not None

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        # "497799835  Xcode  (15.0)"
        line = self._find_line(result, package_id)
        if line is None:
            return None
        match = re.search(r"\(([^)]+)\)\s*$", line)
        return match.group(1) if match else None
