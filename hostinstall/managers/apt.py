"""APT on Debian-family systems."""

from hostinstall.execution import ProcessResult

from .base import InstallOptions, PackageManager


class AptManager(PackageManager):
    name = "apt"
    display_name = "APT"
    binary = "apt-get"
    supports_local_install = True
    install_hint = (
        "APT ships with Debian-family systems; make sure /usr/bin/apt-get is on PATH"
    )

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        target = package_id
        if options.version:
            target = f"{package_id}={options.version}"
        parts = ["sudo"]
        if options.silent:
            parts.append("DEBIAN_FRONTEND=noninteractive")
        parts += ["apt-get", "install"]
        if options.silent:
            parts.append("-y")
        if options.source:
            parts += ["-t", self.quote(options.source)]
        parts.append(self.quote(target))
        return " ".join(parts)

    def query_command(self, package_id: str) -> str:
        return f"dpkg -l {self.quote(package_id)} 2>/dev/null | grep -q '^ii'"

    def version_command(self, package_id: str) -> str:
        return f"dpkg-query -W -f='${{Version}}' {self.quote(package_id)}"

    def uninstall_command(self, package_id: str) -> str:
        return f"sudo apt-get remove -y {self.quote(package_id)}"

    def local_install_command(self, path: str) -> str:
        return f"sudo DEBIAN_FRONTEND=noninteractive apt-get install -y {self.quote(path)}"

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        if not result.ok:
            return None
        return result.stdout.strip() or None
