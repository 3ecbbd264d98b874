"""Package-manager clients, one per ecosystem."""

from hostinstall.execution import Executor

from .apt import AptManager
from .base import InstallOptions, PackageManager, extract_version
from .choco import ChocolateyManager
from .dnf import DnfManager, YumManager
from .homebrew import HomebrewCask, HomebrewFormula
from .mas import MasManager
from .snap import SnapClassicManager, SnapManager
from .winget import WingetManager

MANAGERS: dict[str, type[PackageManager]] = {
    cls.name: cls
    for cls in (
        HomebrewFormula,
        HomebrewCask,
        MasManager,
        AptManager,
        DnfManager,
        YumManager,
        WingetManager,
        ChocolateyManager,
        SnapManager,
        SnapClassicManager,
    )
}


def get_manager(name: str, executor: Executor) -> PackageManager:
    """Instantiate the client registered under ``name``.

    Raises:
        KeyError: If no client is registered under that name
    """
    try:
        cls = MANAGERS[name]
    except KeyError:
        raise KeyError(
            f"Unknown package manager '{name}'. Must be one of: {', '.join(sorted(MANAGERS))}"
        ) from None
    return cls(executor)


__all__ = [
    "MANAGERS",
    "AptManager",
    "ChocolateyManager",
    "DnfManager",
    "HomebrewCask",
    "HomebrewFormula",
    "InstallOptions",
    "MasManager",
    "PackageManager",
    "SnapClassicManager",
    "SnapManager",
    "WingetManager",
    "YumManager",
    "extract_version",
    "get_manager",
]
