"""Target installers, the install protocol and dispatch."""

from .models import FailureKind, Handler, InstallOutcome, InstallResult, Requirement
from .protocol import run_install_protocol
from .registry import InstallerRegistry
from .targets import TargetInstaller, not_available_message

__all__ = [
    "FailureKind",
    "Handler",
    "InstallOutcome",
    "InstallResult",
    "InstallerRegistry",
    "Requirement",
    "TargetInstaller",
    "not_available_message",
    "run_install_protocol",
]
