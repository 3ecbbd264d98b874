"""Format catalog command implementation."""

import json
import sys
import uuid
from pathlib import Path

import click
import yaml

from hostinstall.catalog import validate_catalog
from hostinstall.commands.utils import EXIT_CATALOG, EXIT_FAILED
from hostinstall.config import YAML_SUFFIXES, ConfigError, load_config
from hostinstall.errors import format_error
from hostinstall.paths import get_catalog_path


def format_catalog(data: dict, yaml_output: bool = False) -> str:
    """Render a validated catalog with its targets sorted by name.

    Everything outside ``targets`` keeps its original order, as does each
    target's own fields and handler list.
    """
    normalized = dict(data)
    targets = data["targets"]
    normalized["targets"] = {name: targets[name] for name in sorted(targets)}
    if yaml_output:
        return yaml.safe_dump(normalized, sort_keys=False, allow_unicode=True)
    return json.dumps(normalized, indent=2, ensure_ascii=False) + "\n"


def _replace_contents(path: Path, text: str) -> None:
    temp_path = path.with_suffix(f".tmp.{uuid.uuid4().hex[:8]}")
    try:
        temp_path.write_text(text, encoding="utf-8")
        temp_path.replace(path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


@click.command(name="fmt")
@click.argument("file", required=False, type=click.Path())
@click.option(
    "--write",
    "-w",
    is_flag=True,
    help="Overwrite the file instead of printing to stdout",
)
@click.option(
    "--check",
    is_flag=True,
    help="Exit 1 if the file is not already formatted; write nothing",
)
def catalog_fmt(file: str | None, write: bool, check: bool):
    """Validate a catalog and print it in canonical form.

    Targets are sorted by name. JSON catalogs come out as strict JSON, so
    // comments and trailing commas do not survive a --write. YAML catalogs
    stay YAML.

    FILE: Path to catalog file (default: $HOSTINSTALL_CATALOG or the packaged catalog)
    """
    file_path = Path(file) if file else get_catalog_path()

    try:
        data = load_config(file_path)
        validate_catalog(data)
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_CATALOG)

    formatted = format_catalog(data, yaml_output=file_path.suffix.lower() in YAML_SUFFIXES)

    if check:
        if file_path.read_text(encoding="utf-8") != formatted:
            click.echo(f"{file_path} is not formatted; run 'hostinstall catalog fmt -w {file_path}'")
            sys.exit(EXIT_FAILED)
        click.echo(f"{file_path} is formatted")
        return

    if not write:
        click.echo(formatted, nl=False)
        return

    try:
        _replace_contents(file_path, formatted)
    except OSError as e:
        click.echo(format_error(f"Error writing file: {e}"), err=True)
        sys.exit(EXIT_FAILED)
    click.echo(f"Formatted {file_path}")
