"""Snap, the universal sandboxed package manager."""

from hostinstall.execution import ProcessResult

from .base import InstallOptions, PackageManager


class SnapManager(PackageManager):
    name = "snap"
    display_name = "Snap"
    binary = "snap"
    install_hint = "Install snapd: sudo apt-get install -y snapd"
    classic = False

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        parts = ["sudo", "snap", "install", self.quote(package_id)]
        if self.classic:
            parts.append("--classic")
        if options.source:
            # a snap channel (e.g. latest/stable) selects the track to install from
            parts.append(f"--channel={self.quote(options.source)}")
        if options.version:
            self.ignore_option("version", options.version)
        return " ".join(parts)

    def query_command(self, package_id: str) -> str:
        return f"snap list {self.quote(package_id)}"

    def uninstall_command(self, package_id: str) -> str:
        return f"sudo snap remove {self.quote(package_id)}"

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        # Name  Version  Rev  Tracking  Publisher  Notes
        if not result.ok:
            return None
        for line in result.stdout.splitlines()[1:]:
            fields = line.split()
            if len(fields) >= 2 and fields[0] == package_id:
                return fields[1]
        return None


class SnapClassicManager(SnapManager):
    """Snaps that need classic confinement (editors, SDKs)."""

    name = "snap-classic"
    display_name = "Snap (classic)"
    classic = True
