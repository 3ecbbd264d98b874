"""CLI command definitions for hostinstall."""

import click

from hostinstall import __version__, setup_logging
from hostinstall.commands.catalog import catalog
from hostinstall.commands.check import check
from hostinstall.commands.deps import deps
from hostinstall.commands.eligible import eligible
from hostinstall.commands.install import install
from hostinstall.commands.list import list_targets
from hostinstall.commands.pick import pick
from hostinstall.commands.platform import platform_info
from hostinstall.config import env_debug


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.version_option(__version__, prog_name="hostinstall")
@click.pass_context
def cli(ctx, debug):
    """Install third-party applications on macOS, Linux, Windows, Git Bash and WSL."""
    ctx.ensure_object(dict)
    debug = debug or env_debug()
    ctx.obj["debug"] = debug
    setup_logging(debug)


# Register all commands
cli.add_command(install)
cli.add_command(check)
cli.add_command(eligible)
cli.add_command(list_targets, name="list")
cli.add_command(deps)
cli.add_command(platform_info, name="platform")
cli.add_command(pick)
cli.add_command(catalog)

__all__ = [
    "cli",
]


if __name__ == "__main__":
    cli()
