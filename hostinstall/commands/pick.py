"""Pick command implementation."""

import asyncio
import sys

import click

from hostinstall.errors import format_error
from hostinstall.managers import InstallOptions
from hostinstall.tui import select_target_interactive

from .install import report_result, run_install
from .list import installed_names
from .utils import EXIT_USAGE, get_platform, get_registry


@click.command()
@click.pass_context
def pick(ctx):
    """Choose a target interactively and install it."""
    registry = get_registry(ctx)
    platform = get_platform(ctx)
    installers = registry.eligible(platform)

    if not installers:
        click.echo(f"No targets are available for {platform.category.label}.")
        return

    present = asyncio.run(installed_names(installers, platform))
    try:
        name = select_target_interactive(installers, present)
    except RuntimeError as e:
        click.echo(format_error(f"{e}; pass a target to 'install' instead"), err=True)
        sys.exit(EXIT_USAGE)

    if name is None:
        click.echo("Cancelled.")
        return

    installer = registry.get(name)
    result = asyncio.run(run_install(registry, installer, platform, InstallOptions()))
    report_result(result, installer, platform)
