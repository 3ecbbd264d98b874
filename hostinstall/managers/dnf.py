"""DNF and YUM on RPM-family systems."""

from hostinstall.execution import ProcessResult

from .base import InstallOptions, PackageManager


class DnfManager(PackageManager):
    name = "dnf"
    display_name = "DNF"
    binary = "dnf"
    supports_local_install = True
    install_hint = "Install DNF: sudo yum install -y dnf"

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        target = package_id
        if options.version:
            target = f"{package_id}-{options.version}"
        parts = ["sudo", self.binary, "install"]
        if options.silent:
            parts.append("-y")
        if options.source:
            parts.append(f"--repo={self.quote(options.source)}")
        parts.append(self.quote(target))
        return " ".join(parts)

    def query_command(self, package_id: str) -> str:
        return f"rpm -q {self.quote(package_id)}"

    def version_command(self, package_id: str) -> str:
        return f"rpm -q --queryformat '%{{VERSION}}' {self.quote(package_id)}"

    def uninstall_command(self, package_id: str) -> str:
        return f"sudo {self.binary} remove -y {self.quote(package_id)}"

    def local_install_command(self, path: str) -> str:
        return f"sudo {self.binary} install -y {self.quote(path)}"

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        if not result.ok:
            return None
        return result.stdout.strip() or None


class YumManager(DnfManager):
    """Older RPM-family hosts without DNF."""

    name = "yum"
    display_name = "YUM"
    binary = "yum"
    install_hint = "YUM ships with RPM-family systems; make sure /usr/bin/yum is on PATH"

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        if options.source:
            # yum spells the repository switch differently
            command = super().install_command(package_id, InstallOptions(
                silent=options.silent, version=options.version
            ))
            return command.replace(
                " install", f" --enablerepo={self.quote(options.source)} install", 1
            )
        return super().install_command(package_id, options)
