"""Installer registry and dispatch."""

import dataclasses
import logging
from typing import Iterable

from hostinstall import CLI_NAME
from hostinstall.managers import InstallOptions
from hostinstall.platform import PlatformCategory, PlatformDescriptor, detect_platform

from .models import FailureKind, InstallResult
from .targets import TargetInstaller, not_available_message

_logging = logging.getLogger(__name__)


class InstallerRegistry:
    """All known targets, built once, looked up by name."""

    def __init__(
        self,
        installers: Iterable[TargetInstaller],
        platform: PlatformDescriptor | None = None,
    ):
        self._installers: dict[str, TargetInstaller] = {}
        for installer in installers:
            if installer.name in self._installers:
                raise ValueError(f"Duplicate target '{installer.name}'")
            self._installers[installer.name] = installer
        self._platform = platform

    @classmethod
    def from_catalog(cls, local=None, bridge=None, path=None, platform=None) -> "InstallerRegistry":
        from hostinstall.catalog import build_installers

        return cls(build_installers(local=local, bridge=bridge, path=path), platform=platform)

    @property
    def platform(self) -> PlatformDescriptor:
        if self._platform is None:
            self._platform = detect_platform()
        return self._platform

    def __contains__(self, name: str) -> bool:
        return name in self._installers

    def __len__(self) -> int:
        return len(self._installers)

    def get(self, name: str) -> TargetInstaller:
        """Look up a target by name.

        Raises:
            KeyError: If no target has that name
        """
        try:
            return self._installers[name]
        except KeyError:
            raise KeyError(f"Unknown target '{name}'") from None

    def names(self) -> list[str]:
        return sorted(self._installers)

    def eligible(self, platform: PlatformDescriptor | None = None) -> list[TargetInstaller]:
        platform = platform or self.platform
        return [
            self._installers[name]
            for name in self.names()
            if self._installers[name].is_eligible(platform)
        ]

    def _descriptor(self, category: PlatformCategory | PlatformDescriptor) -> PlatformDescriptor:
        if isinstance(category, PlatformDescriptor):
            return category
        if category == self.platform.category:
            return self.platform
        return dataclasses.replace(self.platform, category=category)

    async def resolve_prerequisites(
        self,
        target: TargetInstaller | str,
        platform: PlatformDescriptor | None = None,
    ) -> list[TargetInstaller]:
        """Declared prerequisites that are eligible here but not yet installed.

        Ordered so each entry comes after its own prerequisites; siblings go
        by priority. Cycles are broken at the first revisit.
        """
        platform = platform or self.platform
        root = self.get(target) if isinstance(target, str) else target
        ordered: list[TargetInstaller] = []
        visited: set[str] = {root.name}

        async def visit(installer: TargetInstaller) -> None:
            for dep_name in installer.requires_for(platform):
                if dep_name in visited:
                    continue
                visited.add(dep_name)
                if dep_name not in self._installers:
                    _logging.warning(f"{installer.name} requires unknown target '{dep_name}'")
                    continue
                dep = self._installers[dep_name]
                if not dep.is_eligible(platform):
                    _logging.debug(f"Skipping {dep_name}: not eligible on {platform.category.value}")
                    continue
                if await dep.is_installed(platform):
                    continue
                await visit(dep)
                ordered.append(dep)

        await visit(root)
        return ordered

    async def plan(
        self,
        target: TargetInstaller | str,
        platform: PlatformDescriptor | None = None,
    ) -> list[TargetInstaller]:
        """Missing prerequisites in install order, followed by the target itself."""
        installer = self.get(target) if isinstance(target, str) else target
        return await self.resolve_prerequisites(installer, platform) + [installer]

    async def dispatch_all(
        self,
        installers: Iterable[TargetInstaller],
        category: PlatformCategory | PlatformDescriptor | None = None,
        options: InstallOptions | None = None,
    ) -> list[tuple[TargetInstaller, InstallResult]]:
        """Dispatch each installer in turn, stopping after the first failure.

        Each entry is installed as its own explicit target; nothing beyond
        ``installers`` is pulled in. Version and source pins in ``options``
        apply to the last entry only, the ones before it inherit ``silent``.
        """
        options = options or InstallOptions()
        prerequisite_options = InstallOptions(silent=options.silent)
        installers = list(installers)
        results = []
        for position, installer in enumerate(installers, start=1):
            last = position == len(installers)
            result = await self.dispatch(
                installer, category, options if last else prerequisite_options
            )
            results.append((installer, result))
            if not result.ok:
                _logging.debug(f"Stopping after {installer.name} failed")
                break
        return results

    async def dispatch(
        self,
        target: TargetInstaller | str,
        category: PlatformCategory | PlatformDescriptor | None = None,
        options: InstallOptions | None = None,
    ) -> InstallResult:
        """Install ``target`` with the handler registered for ``category``.

        Unsupported categories are a ``Skipped`` result, never an exception.
        """
        installer = self.get(target) if isinstance(target, str) else target
        platform = self._descriptor(category if category is not None else self.platform)

        if platform.category not in installer.handlers:
            return InstallResult.skipped(
                not_available_message(installer.display_name, platform.category)
            )

        result = await installer.install(platform, options)
        if result.failure != FailureKind.MISSING_PREREQUISITE or not installer.requires_for(platform):
            return result

        pending = await self.resolve_prerequisites(installer, platform)
        if not pending:
            return result
        extra = [f"{CLI_NAME} install {dep.name}" for dep in pending]
        return dataclasses.replace(
            result, remediation=result.remediation + [s for s in extra if s not in result.remediation]
        )


__all__ = [
    "InstallerRegistry",
]
