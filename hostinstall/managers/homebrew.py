"""Homebrew formulae and casks."""

from hostinstall.execution import ProcessResult

from .base import InstallOptions, PackageManager

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"


class HomebrewFormula(PackageManager):
    name = "brew"
    display_name = "Homebrew"
    binary = "brew"
    install_hint = (
        f'Install Homebrew: /bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'
    )
    list_flag = "--formula"

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        target = package_id
        if options.version:
            # Homebrew pins through versioned formula names (python@3.12).
            target = f"{package_id}@{options.version}"
        if options.source:
            self.ignore_option("source", options.source)
        return f"brew install {self.quote(target)}"

    def query_command(self, package_id: str) -> str:
        return f"brew list {self.list_flag} {self.quote(package_id)}"

    def version_command(self, package_id: str) -> str:
        return f"brew list {self.list_flag} --versions {self.quote(package_id)}"

    def uninstall_command(self, package_id: str) -> str:
        return f"brew uninstall {self.list_flag} {self.quote(package_id)}"

    def parse_version(self, result: ProcessResult, package_id: str) -> str | None:
        # "jq 1.7.1" or "jq 1.6 1.7.1" when several kegs are linked; newest last.
        if not result.ok:
            return None
        parts = result.stdout.split()
        return parts[-1] if len(parts) > 1 else None


class HomebrewCask(HomebrewFormula):
    name = "brew-cask"
    display_name = "Homebrew Cask"
    list_flag = "--cask"

    def install_command(self, package_id: str, options: InstallOptions) -> str:
        if options.version:
            self.ignore_option("version", options.version)
        if options.source:
            self.ignore_option("source", options.source)
        return f"brew install --cask {self.quote(package_id)}"


__all__ = [
    "HomebrewCask",
    "HomebrewFormula",
]
