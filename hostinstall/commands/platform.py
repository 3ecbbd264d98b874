"""Platform command implementation."""

import json

import click

from .utils import get_platform


@click.command(name="platform")
@click.option("--json", "as_json", is_flag=True, help="Print the descriptor as JSON")
@click.pass_context
def platform_info(ctx, as_json: bool):
    """Show how this host was classified."""
    platform = get_platform(ctx)

    if as_json:
        data = {
            "category": platform.category.value,
            "label": platform.category.label,
            "architecture": platform.architecture.value,
            "desktop_available": platform.desktop_available,
            "distro": platform.distro,
            "nested": platform.category.is_nested,
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Platform:     {platform.category.label} ({platform.category.value})")
    if platform.distro:
        click.echo(f"Distribution: {platform.distro}")
    click.echo(f"Architecture: {platform.architecture.value}")
    click.echo(f"Desktop:      {'yes' if platform.desktop_available else 'no'}")
    if platform.category.is_nested:
        click.echo("Windows host: GUI applications are installed on the host through powershell.exe")
