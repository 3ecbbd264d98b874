"""Target catalog loading, validation and installer construction.

The catalog is a JSON-ish (or YAML) file mapping target names to per-platform
handler declarations:

    {
      "targets": {
        "jq": {
          "display_name": "jq",
          "description": "Command-line JSON processor",
          "handlers": {
            "debian,raspbian,wsl": {
              "probe": [{"command": "jq"}, {"package": "apt", "id": "jq"}],
              "channels": [{"manager": "apt", "id": "jq"}],
            },
          },
        },
      },
    }

Handler keys list one or more platform categories separated by commas.
Probe entries are ``{"command"}``, ``{"path"}`` or ``{"package", "id"}``.
Channel entries are ``{"manager", "id"}``, ``{"download", "installer",
"filename"}`` or ``{"archive", "url", "destination"[, "filename"]}``.
A handler marked ``"host": true`` (Git Bash and WSL only) is bound to the
Windows host through the bridge.

``requires`` lists prerequisite targets, either by name or as
``{"name", "priority", "platforms"}``; lower priorities install first and
``platforms`` limits the entry to those categories.

Caching Strategy:
- The raw catalog is validated and cached per path on first access
- Use clear_cache() to force a reload (tests do this between cases)
"""

import re
from pathlib import Path

from hostinstall.bridge import HostBridge
from hostinstall.channels import (
    ARCHIVE_FORMATS,
    ArchiveChannel,
    DownloadPackageChannel,
    HostDelegatedChannel,
    InstallChannel,
    PackageManagerChannel,
)
from hostinstall.config import ConfigError, load_config
from hostinstall.errors import format_field_error
from hostinstall.execution import Executor, LocalExecutor
from hostinstall.installer.models import Handler, Requirement
from hostinstall.installer.targets import TargetInstaller
from hostinstall.managers import MANAGERS, get_manager
from hostinstall.paths import get_catalog_path
from hostinstall.platform import Architecture, PlatformCategory
from hostinstall.probes import (
    Check,
    CommandExists,
    CommandVersion,
    PackageInstalled,
    PathExists,
    VerificationProbe,
)

TARGET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")
PACKAGE_ID_PATTERN = re.compile(r"^[A-Za-z0-9@._+:/-]+$")
HOST_MANAGERS = {"winget", "choco"}

_catalog_cache: dict[Path, dict] = {}


class CatalogError(ConfigError):
    """Raised when the target catalog is malformed."""
    pass


def clear_cache() -> None:
    """Drop every cached catalog so the next access reads from disk."""
    _catalog_cache.clear()


def _require_str_field(data: dict, field: str, entity_name: str) -> None:
    if field not in data:
        raise CatalogError(f"{entity_name} missing required field: {field}")
    if not isinstance(data[field], str) or not data[field].strip():
        raise CatalogError(format_field_error(entity_name, field, "must be a non-empty string"))


def _optional_field(data: dict, field: str, entity_name: str, field_type: type) -> None:
    if field in data and data[field] is not None:
        if not isinstance(data[field], field_type):
            raise CatalogError(
                format_field_error(entity_name, field, f"must be a {field_type.__name__} or null")
            )


def _require_list_field(data: dict, field: str, entity_name: str) -> None:
    if field not in data:
        raise CatalogError(f"{entity_name} missing required field: {field}")
    if not isinstance(data[field], list) or not data[field]:
        raise CatalogError(format_field_error(entity_name, field, "must be a non-empty array"))


def _validate_string_list(data: dict, field: str, entity_name: str) -> None:
    if field in data:
        if not isinstance(data[field], list):
            raise CatalogError(format_field_error(entity_name, field, "must be an array"))
        for i, item in enumerate(data[field]):
            if not isinstance(item, str) or not item.strip():
                raise CatalogError(f"{entity_name} {field}[{i}] must be a non-empty string")


def _validate_package_id(value: str, entity_name: str) -> None:
    if not PACKAGE_ID_PATTERN.match(value):
        raise CatalogError(f"{entity_name} has unsafe package id: {value!r}")


def _validate_url(value: str, entity_name: str) -> None:
    if not value.startswith("https://") or any(c in value for c in " \"'`$;|&"):
        raise CatalogError(f"{entity_name} has invalid download URL: {value!r}")


def _validate_manager(name: str, entity_name: str) -> None:
    if name not in MANAGERS:
        raise CatalogError(
            f"{entity_name} has unknown package manager '{name}'. "
            f"Must be one of: {', '.join(sorted(MANAGERS))}"
        )


def parse_categories(key: str, entity_name: str) -> list[PlatformCategory]:
    categories = []
    for part in key.split(","):
        part = part.strip()
        try:
            categories.append(PlatformCategory(part))
        except ValueError:
            valid = ", ".join(c.value for c in PlatformCategory)
            raise CatalogError(
                f"{entity_name} has unknown platform category '{part}'. Must be one of: {valid}"
            ) from None
    return categories


def _validate_probe(entry: object, entity_name: str) -> None:
    if not isinstance(entry, dict):
        raise CatalogError(f"{entity_name} must be an object")
    if "command" in entry:
        _require_str_field(entry, "command", entity_name)
    elif "path" in entry:
        _require_str_field(entry, "path", entity_name)
    elif "package" in entry:
        _require_str_field(entry, "package", entity_name)
        _require_str_field(entry, "id", entity_name)
        _validate_manager(entry["package"], entity_name)
        _validate_package_id(entry["id"], entity_name)
    else:
        raise CatalogError(f"{entity_name} must declare one of: command, path, package")


def _validate_channel(entry: object, entity_name: str, host: bool) -> None:
    if not isinstance(entry, dict):
        raise CatalogError(f"{entity_name} must be an object")
    if "manager" in entry:
        _require_str_field(entry, "manager", entity_name)
        _require_str_field(entry, "id", entity_name)
        _validate_manager(entry["manager"], entity_name)
        _validate_package_id(entry["id"], entity_name)
        if host and entry["manager"] not in HOST_MANAGERS:
            raise CatalogError(
                f"{entity_name} delegates to the Windows host but uses '{entry['manager']}'. "
                f"Host channels must use one of: {', '.join(sorted(HOST_MANAGERS))}"
            )
        return
    if host:
        raise CatalogError(f"{entity_name} delegates to the Windows host and must use a package manager")
    if "download" in entry:
        _require_str_field(entry, "download", entity_name)
        _require_str_field(entry, "installer", entity_name)
        _require_str_field(entry, "filename", entity_name)
        _validate_url(entry["download"], entity_name)
        _validate_manager(entry["installer"], entity_name)
        if not MANAGERS[entry["installer"]].supports_local_install:
            raise CatalogError(
                f"{entity_name} installer '{entry['installer']}' cannot install package files"
            )
        _validate_package_id(entry["filename"], entity_name)
    elif "archive" in entry:
        _require_str_field(entry, "archive", entity_name)
        _require_str_field(entry, "url", entity_name)
        _require_str_field(entry, "destination", entity_name)
        _optional_field(entry, "filename", entity_name, str)
        if entry["archive"] not in ARCHIVE_FORMATS:
            raise CatalogError(
                f"{entity_name} has invalid archive format: {entry['archive']}. "
                f"Must be one of: {', '.join(ARCHIVE_FORMATS)}"
            )
        if entry["archive"] == "binary" and not entry.get("filename"):
            raise CatalogError(f"{entity_name} binary downloads need a filename")
        _validate_url(entry["url"], entity_name)
    else:
        raise CatalogError(f"{entity_name} must declare one of: manager, download, archive")


def _validate_handler(data: object, entity_name: str, categories: list[PlatformCategory]) -> None:
    if not isinstance(data, dict):
        raise CatalogError(f"{entity_name} must be an object")
    _optional_field(data, "host", entity_name, bool)
    host = bool(data.get("host"))
    if host:
        nested = [c for c in categories if not c.is_nested]
        if nested:
            raise CatalogError(
                f"{entity_name} can only delegate to the Windows host from "
                f"gitbash or wsl, not {nested[0].value}"
            )
    _require_list_field(data, "probe", entity_name)
    for i, entry in enumerate(data["probe"]):
        _validate_probe(entry, f"{entity_name} probe[{i}]")
    _require_list_field(data, "channels", entity_name)
    for i, entry in enumerate(data["channels"]):
        _validate_channel(entry, f"{entity_name} channels[{i}]", host)
    _validate_string_list(data, "notes", entity_name)
    _optional_field(data, "version", entity_name, str)
    _validate_string_list(data, "architectures", entity_name)
    for arch in data.get("architectures", []):
        if arch not in {a.value for a in Architecture}:
            raise CatalogError(f"{entity_name} has unknown architecture '{arch}'")


def _validate_requirement(entry: object, entity_name: str) -> None:
    if isinstance(entry, str):
        return
    if not isinstance(entry, dict):
        raise CatalogError(f"{entity_name} must be a target name or an object")
    _require_str_field(entry, "name", entity_name)
    _optional_field(entry, "priority", entity_name, int)
    _validate_string_list(entry, "platforms", entity_name)
    for key in entry.get("platforms", []):
        parse_categories(key, entity_name)


def _requirement_name(entry: str | dict) -> str:
    return entry if isinstance(entry, str) else entry["name"]


def build_requirement(entry: str | dict) -> Requirement:
    if isinstance(entry, str):
        return Requirement(entry)
    platforms = None
    if "platforms" in entry:
        platforms = frozenset(
            category
            for key in entry["platforms"]
            for category in parse_categories(key, f"Requirement '{entry['name']}'")
        )
    return Requirement(entry["name"], entry.get("priority", 0), platforms)


def _validate_target(data: object, name: str) -> None:
    entity_name = f"Target '{name}'"
    if not TARGET_NAME_PATTERN.match(name):
        raise CatalogError(f"{entity_name} has an invalid name; use lowercase letters, digits, '.', '_' or '-'")
    if not isinstance(data, dict):
        raise CatalogError(f"Invalid catalog: '{name}' must be an object")
    _require_str_field(data, "display_name", entity_name)
    _require_str_field(data, "description", entity_name)
    _optional_field(data, "requires_desktop", entity_name, bool)
    _optional_field(data, "requires", entity_name, list)
    for i, entry in enumerate(data.get("requires") or []):
        _validate_requirement(entry, f"{entity_name} requires[{i}]")
    if "handlers" not in data:
        raise CatalogError(f"{entity_name} missing required field: handlers")
    if not isinstance(data["handlers"], dict) or not data["handlers"]:
        raise CatalogError(format_field_error(entity_name, "handlers", "must be a non-empty object"))

    seen: set[PlatformCategory] = set()
    for key, handler in data["handlers"].items():
        categories = parse_categories(key, entity_name)
        for category in categories:
            if category in seen:
                raise CatalogError(f"{entity_name} declares {category.value} more than once")
            seen.add(category)
        _validate_handler(handler, f"{entity_name} handler '{key}'", categories)


def validate_catalog(raw: dict) -> dict:
    """Validate a parsed catalog and return its ``targets`` mapping.

    Raises:
        CatalogError: On the first problem found
    """
    if "targets" not in raw:
        raise CatalogError("Invalid catalog: missing top-level 'targets' key")
    targets = raw["targets"]
    if not isinstance(targets, dict):
        raise CatalogError("Invalid catalog: 'targets' must be an object")
    for name, data in targets.items():
        _validate_target(data, name)
    for name, data in targets.items():
        for entry in data.get("requires") or []:
            dep = _requirement_name(entry)
            if dep not in targets:
                raise CatalogError(f"Target '{name}' requires unknown target '{dep}'")
    return targets


def get_catalog(path: Path | None = None) -> dict:
    """Load and validate the catalog, caching it per path.

    Raises:
        CatalogError: If the file cannot be loaded or is invalid
    """
    path = path or get_catalog_path()
    if path in _catalog_cache:
        return _catalog_cache[path]
    try:
        raw = load_config(path)
    except CatalogError:
        raise
    except ConfigError as e:
        raise CatalogError(f"Failed to load catalog {path}: {e}") from e
    targets = validate_catalog(raw)
    _catalog_cache[path] = targets
    return targets


def _build_check(entry: dict, executor: Executor) -> Check:
    if "command" in entry:
        return CommandExists(entry["command"], executor)
    if "path" in entry:
        return PathExists(entry["path"], executor)
    return PackageInstalled(get_manager(entry["package"], executor), entry["id"])


def _build_channel(entry: dict, executor: Executor, bridge: HostBridge | None) -> InstallChannel:
    if "manager" in entry:
        manager = get_manager(entry["manager"], executor)
        if bridge is not None:
            return HostDelegatedChannel(manager, entry["id"], bridge)
        return PackageManagerChannel(manager, entry["id"])
    if "download" in entry:
        return DownloadPackageChannel(
            entry["download"],
            get_manager(entry["installer"], executor),
            entry["filename"],
            executor,
        )
    return ArchiveChannel(
        entry["url"],
        entry["archive"],
        entry["destination"],
        executor,
        filename=entry.get("filename"),
    )


def build_handler(data: dict, local: Executor, bridge: HostBridge) -> Handler:
    host = bool(data.get("host"))
    executor: Executor = bridge if host else local
    architectures = data.get("architectures")
    return Handler(
        probe=VerificationProbe(tuple(_build_check(e, executor) for e in data["probe"])),
        channels=tuple(
            _build_channel(e, executor, bridge if host else None) for e in data["channels"]
        ),
        architectures=frozenset(Architecture(a) for a in architectures) if architectures else None,
        notes=tuple(data.get("notes", [])),
        host=host,
        version=CommandVersion(data["version"], executor) if data.get("version") else None,
    )


def build_installers(
    local: Executor | None = None,
    bridge: HostBridge | None = None,
    path: Path | None = None,
) -> list[TargetInstaller]:
    """Construct one ``TargetInstaller`` per catalog entry.

    Raises:
        CatalogError: If the catalog cannot be loaded or is invalid
    """
    local = local or LocalExecutor()
    bridge = bridge or HostBridge(local)
    installers = []
    for name, data in get_catalog(path).items():
        handlers = {}
        for key, handler_data in data["handlers"].items():
            handler = build_handler(handler_data, local, bridge)
            for category in parse_categories(key, f"Target '{name}'"):
                handlers[category] = handler
        installers.append(
            TargetInstaller(
                name=name,
                display_name=data["display_name"],
                description=data["description"],
                handlers=handlers,
                requires_desktop=bool(data.get("requires_desktop", False)),
                requires=tuple(build_requirement(e) for e in (data.get("requires") or [])),
            )
        )
    return installers


__all__ = [
    "CatalogError",
    "build_handler",
    "build_installers",
    "build_requirement",
    "clear_cache",
    "get_catalog",
    "parse_categories",
    "validate_catalog",
]
