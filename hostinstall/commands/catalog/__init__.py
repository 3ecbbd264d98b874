"""Target catalog commands."""

import click

from hostinstall.commands.catalog.fmt import catalog_fmt
from hostinstall.commands.catalog.validate import catalog_validate


@click.group()
def catalog():
    """Target catalog commands."""
    pass


catalog.add_command(catalog_fmt, name="fmt")
catalog.add_command(catalog_validate, name="validate")
