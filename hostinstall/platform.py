"""Platform classification.

The classifier reads process-level signals (``sys.platform``, machine
architecture, environment variables and a handful of marker files) and turns
them into an immutable ``PlatformDescriptor``. Reading the signals and
classifying them are separate steps so the decision logic in ``classify()``
stays a pure function that tests can feed directly.

``detect_platform()`` memoises the result: the category is computed once per
process and every downstream decision is a function of that value.
"""

from __future__ import annotations

import functools
import os
import platform as _platform
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping


class PlatformCategory(Enum):
    MACOS = "macos"
    DEBIAN = "debian"
    RPM = "rpm"
    RASPBIAN = "raspbian"
    WINDOWS = "windows"
    GITBASH = "gitbash"
    WSL = "wsl"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def is_nested(self) -> bool:
        """True for shells that run on top of a Windows host."""
        return self in (PlatformCategory.GITBASH, PlatformCategory.WSL)

    @classmethod
    def parse(cls, value: str) -> "PlatformCategory":
        """Parse a category name, accepting common distribution aliases."""
        key = value.strip().lower()
        key = _CATEGORY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as e:
            valid = [c.value for c in cls]
            raise ValueError(
                f"Invalid platform category '{value}'. Must be one of: {', '.join(valid)}"
            ) from e


_CATEGORY_LABELS = {
    PlatformCategory.MACOS: "macOS",
    PlatformCategory.DEBIAN: "Debian-family",
    PlatformCategory.RPM: "RPM-family",
    PlatformCategory.RASPBIAN: "Raspberry Pi OS",
    PlatformCategory.WINDOWS: "Windows",
    PlatformCategory.GITBASH: "Git Bash",
    PlatformCategory.WSL: "WSL",
    PlatformCategory.UNKNOWN: "unknown",
}

_CATEGORY_ALIASES = {
    "darwin": "macos",
    "ubuntu": "debian",
    "amazon_linux": "rpm",
    "amzn": "rpm",
    "rhel": "rpm",
    "centos": "rpm",
    "fedora": "rpm",
    "win32": "windows",
}


class Architecture(Enum):
    X86_64 = "x86_64"
    ARM64 = "arm64"
    OTHER = "other"

    @classmethod
    def from_machine(cls, machine: str) -> "Architecture":
        machine = machine.strip().lower()
        if machine in ("x86_64", "amd64", "x64"):
            return cls.X86_64
        if machine in ("arm64", "aarch64", "armv8", "armv8l"):
            return cls.ARM64
        return cls.OTHER


@dataclass(frozen=True)
class PlatformDescriptor:
    category: PlatformCategory
    architecture: Architecture
    desktop_available: bool
    distro: str | None = None

    def describe(self) -> str:
        desktop = "desktop" if self.desktop_available else "headless"
        distro = f" ({self.distro})" if self.distro else ""
        return (
            f"{self.category.label}{distro}, {self.architecture.value}, {desktop}"
        )


# Files whose mere presence feeds classification.
MARKER_FILES = (
    "/etc/debian_version",
    "/etc/redhat-release",
    "/etc/system-release",
    "/etc/rpi-issue",
    "/mnt/wslg",
)

_GITBASH_MSYSTEMS = {"MINGW64", "MINGW32", "UCRT64", "CLANG64", "CLANGARM64", "MSYS"}


@dataclass(frozen=True)
class HostSignals:
    """Raw, read-only inputs to the classifier."""

    system: str
    machine: str
    environ: Mapping[str, str] = field(default_factory=dict)
    markers: frozenset[str] = frozenset()
    os_release: str = ""
    kernel_release: str = ""


def _read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def read_host_signals() -> HostSignals:
    """Collect the signals ``classify()`` needs from the running process."""
    markers = frozenset(p for p in MARKER_FILES if os.path.exists(p))
    os_release = _read_text("/etc/os-release") or _read_text("/etc/lsb-release")
    return HostSignals(
        system=sys.platform,
        machine=_platform.machine(),
        environ=dict(os.environ),
        markers=markers,
        os_release=os_release,
        kernel_release=_read_text("/proc/sys/kernel/osrelease"),
    )


def parse_distro(os_release: str) -> str | None:
    """Extract the distribution id from os-release or lsb-release text."""
    for pattern in (r"^ID=[\"']?([^\"'\n]+)[\"']?", r"^DISTRIB_ID=[\"']?([^\"'\n]+)[\"']?"):
        match = re.search(pattern, os_release, re.MULTILINE)
        if match:
            return match.group(1).strip().lower()
    return None


def _is_wsl(signals: HostSignals) -> bool:
    if signals.environ.get("WSL_DISTRO_NAME"):
        return True
    return "microsoft" in signals.kernel_release.lower()


def _has_display(signals: HostSignals, category: PlatformCategory) -> bool:
    env = signals.environ
    if env.get("WAYLAND_DISPLAY") or env.get("DISPLAY"):
        return True
    if env.get("XDG_SESSION_TYPE") in ("x11", "wayland"):
        return True
    if env.get("XDG_CURRENT_DESKTOP") or env.get("DESKTOP_SESSION"):
        return True
    if category == PlatformCategory.WSL and "/mnt/wslg" in signals.markers:
        return True
    return False


def _classify_linux(signals: HostSignals, distro: str | None) -> PlatformCategory:
    if _is_wsl(signals):
        return PlatformCategory.WSL
    if "/etc/debian_version" in signals.markers:
        if distro in ("raspbian", "raspberry") or "/etc/rpi-issue" in signals.markers:
            return PlatformCategory.RASPBIAN
        return PlatformCategory.DEBIAN
    if (
        "/etc/redhat-release" in signals.markers
        or "/etc/system-release" in signals.markers
    ):
        return PlatformCategory.RPM
    return PlatformCategory.UNKNOWN


def classify(signals: HostSignals) -> PlatformDescriptor:
    """Classify host signals into a platform descriptor."""
    architecture = Architecture.from_machine(signals.machine)
    system = signals.system.lower()
    distro: str | None = None

    if system == "darwin":
        category = PlatformCategory.MACOS
        desktop = True
    elif system in ("win32", "cygwin", "msys"):
        msystem = signals.environ.get("MSYSTEM", "").upper()
        if msystem in _GITBASH_MSYSTEMS or system in ("cygwin", "msys"):
            category = PlatformCategory.GITBASH
        else:
            category = PlatformCategory.WINDOWS
        desktop = True
    elif system.startswith("linux"):
        distro = parse_distro(signals.os_release)
        category = _classify_linux(signals, distro)
        desktop = _has_display(signals, category)
    else:
        category = PlatformCategory.UNKNOWN
        desktop = False

    if category == PlatformCategory.WSL and not distro:
        wsl_name = signals.environ.get("WSL_DISTRO_NAME")
        distro = wsl_name.lower() if wsl_name else None

    return PlatformDescriptor(
        category=category,
        architecture=architecture,
        desktop_available=desktop,
        distro=distro,
    )


@functools.lru_cache(maxsize=None)
def detect_platform() -> PlatformDescriptor:
    """Classify the running process once and return the cached result."""
    return classify(read_host_signals())


__all__ = [
    "Architecture",
    "HostSignals",
    "MARKER_FILES",
    "PlatformCategory",
    "PlatformDescriptor",
    "classify",
    "detect_platform",
    "parse_distro",
    "read_host_signals",
]
