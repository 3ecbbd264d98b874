"""Install command implementation."""

import asyncio
import logging
import os
import sys

import click

from hostinstall import CLI_NAME
from hostinstall.errors import format_remediation
from hostinstall.execution import EnvironmentDelta
from hostinstall.installer import (
    InstallerRegistry,
    InstallOutcome,
    InstallResult,
    TargetInstaller,
)
from hostinstall.managers import InstallOptions
from hostinstall.platform import PlatformDescriptor

from .utils import EXIT_FAILED, get_platform, get_registry, get_target

_logging = logging.getLogger(__name__)


def format_env_delta(delta: EnvironmentDelta) -> list[str]:
    """Shell lines a user can paste to apply an environment delta."""
    lines = []
    if delta.prepend_path:
        joined = os.pathsep.join(delta.prepend_path)
        lines.append(f'export PATH="{joined}{os.pathsep}$PATH"')
    for key, value in delta.variables.items():
        lines.append(f'export {key}="{value}"')
    return lines


def print_result(
    result: InstallResult, installer: TargetInstaller, platform: PlatformDescriptor
) -> None:
    """Print one install result, including troubleshooting steps on failure."""
    if result.outcome == InstallOutcome.SKIPPED:
        click.echo(f"⏭️  {result.message}")
        return

    if result.outcome == InstallOutcome.INSTALLED:
        click.secho(f"✅ {result.message}", fg="green")
        handler = installer.handler_for(platform)
        for note in handler.notes if handler else ():
            click.echo(f"   {note}")
        if not result.env_delta.is_empty:
            click.echo("\nOpen a new shell or apply these changes to use it right away:")
            for line in format_env_delta(result.env_delta):
                click.echo(f"  {line}")
        return

    kind = result.failure.value if result.failure else "Failure"
    click.secho(f"❌ {kind}: {result.message}", fg="red", err=True)
    if result.remediation:
        click.echo("\nTroubleshooting:", err=True)
        click.echo(format_remediation(result.remediation), err=True)


def report_result(
    result: InstallResult, installer: TargetInstaller, platform: PlatformDescriptor
) -> None:
    """Print an install result; exits 1 when it failed."""
    print_result(result, installer, platform)
    if not result.ok:
        sys.exit(EXIT_FAILED)


def print_summary(results: list[tuple[TargetInstaller, InstallResult]], planned: int) -> None:
    counts = {outcome: 0 for outcome in InstallOutcome}
    for _, result in results:
        counts[result.outcome] += 1
    click.echo("\nInstallation summary:")
    click.echo(f"  Installed: {counts[InstallOutcome.INSTALLED]}")
    click.echo(f"  Already present or skipped: {counts[InstallOutcome.SKIPPED]}")
    if counts[InstallOutcome.FAILED]:
        click.echo(f"  Failed: {counts[InstallOutcome.FAILED]}")
    if len(results) < planned:
        click.echo(f"  Not attempted: {planned - len(results)}")


async def run_install(
    registry: InstallerRegistry,
    installer: TargetInstaller,
    platform: PlatformDescriptor,
    options: InstallOptions,
) -> InstallResult:
    if installer.is_eligible(platform) and installer.requires_for(platform):
        pending = await registry.resolve_prerequisites(installer, platform)
        for dep in pending:
            click.echo(
                f"⚠️  {installer.display_name} may need {dep.display_name}: "
                f"run '{CLI_NAME} install {dep.name}' first "
                f"(or '{CLI_NAME} install --with-deps {installer.name}')"
            )
    _logging.debug(f"Installing {installer.name} on {platform.describe()}")
    return await registry.dispatch(installer, platform, options)


def install_with_prerequisites(
    registry: InstallerRegistry,
    installer: TargetInstaller,
    platform: PlatformDescriptor,
    options: InstallOptions,
    with_deps: bool,
    dry_run: bool,
    assume_yes: bool,
) -> None:
    """Install missing prerequisites (with_deps only) and then the target."""
    plan = [installer]
    if with_deps:
        plan = asyncio.run(registry.plan(installer, platform))

    if len(plan) > 1:
        click.echo("The following will be installed, in this order:")
        for item in plan:
            click.echo(f"  - {item.display_name} ({item.name})")
    else:
        click.echo(f"Preparing to install: {installer.display_name}")

    if dry_run:
        click.echo("[Dry run: nothing was installed]")
        return

    if len(plan) > 1 and not assume_yes:
        if not click.confirm("Proceed with installation?", default=True):
            click.echo("Installation cancelled.")
            return

    results = asyncio.run(registry.dispatch_all(plan, platform, options))
    for item, result in results:
        if len(plan) > 1:
            click.echo(f"\n── {item.display_name} ──")
        print_result(result, item, platform)

    if len(plan) > 1:
        print_summary(results, len(plan))
    if not results[-1][1].ok:
        sys.exit(EXIT_FAILED)


@click.command()
@click.argument("target")
@click.option(
    "--timeout",
    "-t",
    type=click.IntRange(min=1),
    default=None,
    help="Install step timeout in seconds (default: $HOSTINSTALL_TIMEOUT or 600)",
)
@click.option("--version", "version", default=None, help="Pin an exact package version")
@click.option("--source", default=None, help="Package source/repository to install from")
@click.option(
    "--silent/--interactive",
    default=True,
    help="Suppress installer prompts (default) or let them through",
)
@click.option(
    "--with-deps",
    is_flag=True,
    help="Install missing prerequisite targets first, in dependency order",
)
@click.option("--dry-run", is_flag=True, help="Show what would be installed without installing")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask before installing prerequisites")
@click.pass_context
def install(
    ctx,
    target: str,
    timeout: int | None,
    version: str | None,
    source: str | None,
    silent: bool,
    with_deps: bool,
    dry_run: bool,
    assume_yes: bool,
):
    """Install TARGET with whichever package manager fits this host.

    Prerequisites are only installed with --with-deps, and the first
    failure stops the chain. --version and --source apply to TARGET alone.
    """
    registry = get_registry(ctx, timeout=timeout)
    installer = get_target(registry, target)
    platform = get_platform(ctx)
    options = InstallOptions(silent=silent, version=version, source=source)

    if with_deps or dry_run:
        install_with_prerequisites(
            registry,
            installer,
            platform,
            options,
            with_deps=with_deps,
            dry_run=dry_run,
            assume_yes=assume_yes,
        )
        return

    result = asyncio.run(run_install(registry, installer, platform, options))
    report_result(result, installer, platform)
