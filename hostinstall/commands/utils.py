"""Shared helpers for commands."""

import sys

import click

from hostinstall import CLI_NAME
from hostinstall.catalog import CatalogError
from hostinstall.config import ConfigError, get_install_timeout
from hostinstall.errors import format_error, format_suggestion
from hostinstall.execution import LocalExecutor
from hostinstall.installer import InstallerRegistry, TargetInstaller
from hostinstall.platform import PlatformDescriptor, detect_platform

EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_CATALOG = 4


def get_platform(ctx: click.Context) -> PlatformDescriptor:
    """Platform for this invocation; tests may inject one through ctx.obj."""
    platform = ctx.obj.get("platform")
    if platform is None:
        platform = detect_platform()
        ctx.obj["platform"] = platform
    return platform


def get_registry(ctx: click.Context, timeout: int | None = None) -> InstallerRegistry:
    """Build the registry once per invocation, exiting 4 on catalog errors."""
    registry = ctx.obj.get("registry")
    if registry is not None:
        return registry
    try:
        install_timeout = timeout or get_install_timeout()
        local = LocalExecutor(install_timeout=install_timeout)
        registry = InstallerRegistry.from_catalog(local=local, platform=get_platform(ctx))
    except CatalogError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_CATALOG)
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_USAGE)
    ctx.obj["registry"] = registry
    return registry


def get_target(registry: InstallerRegistry, name: str) -> TargetInstaller:
    """Look up a target by name, exiting 2 if it is unknown."""
    if name not in registry:
        click.echo(
            format_suggestion(
                f"unknown target '{name}'",
                f"run '{CLI_NAME} list --all' to see known targets",
            ),
            err=True,
        )
        sys.exit(EXIT_USAGE)
    return registry.get(name)


__all__ = [
    "EXIT_CATALOG",
    "EXIT_FAILED",
    "EXIT_USAGE",
    "get_platform",
    "get_registry",
    "get_target",
]
