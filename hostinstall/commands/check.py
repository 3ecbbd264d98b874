"""Check command implementation."""

import asyncio
import sys

import click
from packaging import version as pkg_version

from hostinstall.installer import TargetInstaller
from hostinstall.platform import PlatformDescriptor

from .utils import EXIT_FAILED, get_platform, get_registry, get_target


def is_version_satisfied(installed: str | None, minimum: str) -> bool:
    """Compare versions with packaging; unparseable versions pass."""
    if not installed:
        return False
    try:
        return pkg_version.parse(installed) >= pkg_version.parse(minimum)
    except pkg_version.InvalidVersion:
        return True


async def run_check(
    installer: TargetInstaller, platform: PlatformDescriptor, min_version: str | None
) -> bool:
    if not await installer.is_installed(platform):
        click.echo(f"⚪ {installer.display_name}: not installed")
        return False

    version = await installer.installed_version(platform)
    label = f" {version}" if version else ""

    if min_version and not is_version_satisfied(version, min_version):
        shown = version or "unknown version"
        click.echo(f"⚠️  {installer.display_name}: {shown} installed, {min_version} or newer required")
        return False

    click.echo(f"✅ {installer.display_name}{label}: installed")
    return True


@click.command()
@click.argument("target")
@click.option("--min-version", default=None, help="Also require at least this version")
@click.pass_context
def check(ctx, target: str, min_version: str | None):
    """Check whether TARGET is installed (exit 0) or not (exit 1)."""
    if min_version:
        try:
            pkg_version.parse(min_version)
        except pkg_version.InvalidVersion:
            raise click.BadParameter(f"'{min_version}' is not a valid version", param_hint="--min-version")

    registry = get_registry(ctx)
    installer = get_target(registry, target)
    platform = get_platform(ctx)

    if not asyncio.run(run_check(installer, platform, min_version)):
        sys.exit(EXIT_FAILED)
