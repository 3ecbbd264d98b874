"""Catalog path helpers for hostinstall."""

import os
from pathlib import Path

CATALOG_ENV = "HOSTINSTALL_CATALOG"


def get_packaged_catalog_path() -> Path:
    """Return path to the packaged target catalog (read-only)"""
    return Path(__file__).parent / "data" / "targets.json"


def get_catalog_path() -> Path:
    """Return path to the target catalog.

    Priority:
    1. HOSTINSTALL_CATALOG environment variable (if set)
    2. the catalog shipped with the package
    """
    custom = os.environ.get(CATALOG_ENV)
    if custom:
        return Path(custom).expanduser()
    return get_packaged_catalog_path()


__all__ = [
    "CATALOG_ENV",
    "get_catalog_path",
    "get_packaged_catalog_path",
]
