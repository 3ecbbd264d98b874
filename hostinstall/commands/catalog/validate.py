"""Validate catalog command implementation."""

import sys
from pathlib import Path

import click

from hostinstall.catalog import validate_catalog
from hostinstall.commands.utils import EXIT_CATALOG
from hostinstall.config import ConfigError, load_config
from hostinstall.errors import format_error
from hostinstall.paths import get_catalog_path
from hostinstall.platform import PlatformCategory


@click.command(name="validate")
@click.argument("file", required=False, type=click.Path())
def catalog_validate(file: str | None):
    """Check a catalog file for errors without installing anything.

    FILE: Path to catalog file (default: $HOSTINSTALL_CATALOG or the packaged catalog)
    """
    file_path = Path(file) if file else get_catalog_path()

    try:
        targets = validate_catalog(load_config(file_path))
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_CATALOG)

    covered = set()
    for data in targets.values():
        for key in data["handlers"]:
            covered.update(part.strip() for part in key.split(","))
    uncovered = [c.value for c in PlatformCategory if c != PlatformCategory.UNKNOWN and c.value not in covered]

    click.echo(f"✅ {file_path}: {len(targets)} target(s) OK")
    if uncovered:
        click.echo(f"   No target handles: {', '.join(uncovered)}")
