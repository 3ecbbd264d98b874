"""Eligible command implementation."""

import sys

import click

from .utils import EXIT_FAILED, get_platform, get_registry, get_target


@click.command()
@click.argument("target")
@click.pass_context
def eligible(ctx, target: str):
    """Check whether TARGET can be installed on this host (exit 0) or not (exit 1)."""
    registry = get_registry(ctx)
    installer = get_target(registry, target)
    platform = get_platform(ctx)

    if installer.is_eligible(platform):
        click.echo(f"✅ {installer.display_name} can be installed on {platform.category.label}.")
        return

    if platform.category not in installer.eligible_platforms:
        supported = ", ".join(sorted(c.label for c in installer.eligible_platforms))
        click.echo(f"❌ {installer.display_name} is not available for {platform.category.label}.")
        click.echo(f"   Supported: {supported}")
    else:
        click.echo(
            f"❌ {installer.display_name} needs a graphical desktop and none was detected."
        )
    sys.exit(EXIT_FAILED)
