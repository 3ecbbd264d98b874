"""Deps command implementation."""

import asyncio

import click

from hostinstall import CLI_NAME

from .utils import get_platform, get_registry, get_target


@click.command()
@click.argument("target")
@click.pass_context
def deps(ctx, target: str):
    """Show the prerequisite targets TARGET declares and which are still missing."""
    registry = get_registry(ctx)
    installer = get_target(registry, target)
    platform = get_platform(ctx)

    required = installer.requires_for(platform)
    if not required:
        click.echo(f"{installer.display_name} has no prerequisites on {platform.category.label}.")
        return

    pending = asyncio.run(registry.resolve_prerequisites(installer, platform))
    pending_names = {dep.name for dep in pending}

    click.echo(f"{installer.display_name} requires:")
    for name in required:
        dep = registry.get(name)
        if name in pending_names:
            click.echo(f"  ⬜ {name} - run '{CLI_NAME} install {name}'")
        elif not dep.is_eligible(platform):
            click.echo(f"  ➖ {name} - not available for {platform.category.label}")
        else:
            click.echo(f"  ✅ {name}")

    # transitive prerequisites that the direct list above does not show
    for dep in pending:
        if dep.name not in required:
            click.echo(f"  ⬜ {dep.name} (via another prerequisite) - run '{CLI_NAME} install {dep.name}'")
