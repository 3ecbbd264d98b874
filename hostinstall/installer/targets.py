"""Target installers: one capability record per installable application."""

import logging
from dataclasses import dataclass
from typing import Mapping

from hostinstall.channels import PackageManagerChannel
from hostinstall.managers import InstallOptions
from hostinstall.platform import PlatformCategory, PlatformDescriptor

from .models import Handler, InstallResult, Requirement
from .protocol import run_install_protocol

_logging = logging.getLogger(__name__)


def not_available_message(name: str, category: PlatformCategory) -> str:
    return f"{name} is not available for {category.label}."


@dataclass(frozen=True)
class TargetInstaller:
    name: str
    display_name: str
    description: str
    handlers: Mapping[PlatformCategory, Handler]
    requires_desktop: bool = False
    requires: tuple[Requirement, ...] = ()

    @property
    def eligible_platforms(self) -> frozenset[PlatformCategory]:
        return frozenset(self.handlers)

    def requires_for(self, platform: PlatformDescriptor) -> list[str]:
        """Prerequisite names that apply on ``platform``, lowest priority first."""
        applicable = [r for r in self.requires if r.applies_to(platform.category)]
        return [r.name for r in sorted(applicable, key=lambda r: r.priority)]

    def handler_for(self, platform: PlatformDescriptor) -> Handler | None:
        return self.handlers.get(platform.category)

    def is_eligible(self, platform: PlatformDescriptor) -> bool:
        if platform.category not in self.handlers:
            return False
        return not self.requires_desktop or platform.desktop_available

    async def is_installed(self, platform: PlatformDescriptor) -> bool:
        handler = self.handler_for(platform)
        if handler is None:
            return False
        return await handler.probe()

    async def installed_version(self, platform: PlatformDescriptor) -> str | None:
        """Best-effort installed version, or None if it cannot be determined."""
        handler = self.handler_for(platform)
        if handler is None:
            return None
        if handler.version is not None:
            version = await handler.version.read()
            if version:
                return version
        for channel in handler.channels:
            if not isinstance(channel, PackageManagerChannel):
                continue
            if not await channel.manager.is_available():
                continue
            version = await channel.manager.package_version(channel.package_id)
            if version:
                return version
        return None

    async def install(
        self, platform: PlatformDescriptor, options: InstallOptions | None = None
    ) -> InstallResult:
        handler = self.handler_for(platform)
        if handler is None:
            return InstallResult.skipped(not_available_message(self.display_name, platform.category))
        if self.requires_desktop and not platform.desktop_available:
            return InstallResult.skipped(
                f"{self.display_name} requires a graphical desktop, "
                f"which is not available on this {platform.category.label} host."
            )
        if not handler.supports(platform.architecture):
            return InstallResult.skipped(
                f"{self.display_name} is not available for "
                f"{platform.architecture.value} on {platform.category.label}."
            )
        _logging.debug(f"Dispatching {self.name} to the {platform.category.value} handler")
        return await run_install_protocol(self.display_name, handler, options)


__all__ = [
    "TargetInstaller",
    "not_available_message",
]
