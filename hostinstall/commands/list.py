"""List command implementation."""

import asyncio

import click

from hostinstall.installer import TargetInstaller
from hostinstall.platform import PlatformDescriptor

from .utils import get_platform, get_registry


async def installed_names(installers: list[TargetInstaller], platform: PlatformDescriptor) -> set[str]:
    """Names of the targets whose probe reports present, checked one at a time."""
    present = set()
    for installer in installers:
        if await installer.is_installed(platform):
            present.add(installer.name)
    return present


@click.command(name="list")
@click.option("--all", "-a", "show_all", is_flag=True, help="Include targets not installable on this host")
@click.option("--status", "-s", is_flag=True, help="Probe each target and show whether it is installed")
@click.pass_context
def list_targets(ctx, show_all: bool, status: bool):
    """List targets installable on this host."""
    registry = get_registry(ctx)
    platform = get_platform(ctx)

    installers = [registry.get(n) for n in registry.names()] if show_all else registry.eligible(platform)
    if not installers:
        click.echo(f"No targets are available for {platform.category.label}.")
        return

    present: set[str] = set()
    if status:
        present = asyncio.run(installed_names([i for i in installers if i.is_eligible(platform)], platform))

    width = max(len(i.name) for i in installers) + 2
    for installer in installers:
        if not installer.is_eligible(platform):
            icon = "➖"
        elif status:
            icon = "✅" if installer.name in present else "⬜"
        else:
            icon = "•"
        click.echo(f"{icon} {installer.name:<{width}} {installer.description}")
