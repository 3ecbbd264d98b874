"""Data models for the install protocol."""

from dataclasses import dataclass, field
from enum import Enum

from hostinstall.channels import InstallChannel
from hostinstall.execution import EnvironmentDelta
from hostinstall.platform import Architecture, PlatformCategory
from hostinstall.probes import CommandVersion, VerificationProbe


class InstallOutcome(Enum):
    SKIPPED = "skipped"
    INSTALLED = "installed"
    FAILED = "failed"


class FailureKind(Enum):
    MISSING_PREREQUISITE = "MissingPrerequisite"
    EXECUTION_FAILURE = "ExecutionFailure"
    VERIFICATION_FAILURE = "VerificationFailure"


@dataclass(frozen=True)
class InstallResult:
    outcome: InstallOutcome
    message: str
    remediation: list[str] = field(default_factory=list)
    failure: FailureKind | None = None
    env_delta: EnvironmentDelta = field(default_factory=EnvironmentDelta)
    channel: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome != InstallOutcome.FAILED

    @classmethod
    def skipped(cls, message: str) -> "InstallResult":
        return cls(InstallOutcome.SKIPPED, message)

    @classmethod
    def installed(
        cls, message: str, channel: str, env_delta: EnvironmentDelta | None = None
    ) -> "InstallResult":
        return cls(
            InstallOutcome.INSTALLED,
            message,
            channel=channel,
            env_delta=env_delta or EnvironmentDelta(),
        )

    @classmethod
    def failed(
        cls,
        failure: FailureKind,
        message: str,
        remediation: list[str] | None = None,
        channel: str | None = None,
    ) -> "InstallResult":
        return cls(
            InstallOutcome.FAILED,
            message,
            remediation=list(remediation or []),
            failure=failure,
            channel=channel,
        )


@dataclass(frozen=True)
class Requirement:
    """A prerequisite target, optionally limited to some platform categories.

    Lower ``priority`` installs first; ties keep declaration order.
    """

    name: str
    priority: int = 0
    platforms: frozenset[PlatformCategory] | None = None

    def applies_to(self, category: PlatformCategory) -> bool:
        return self.platforms is None or category in self.platforms


@dataclass(frozen=True)
class Handler:
    """How one target is checked and installed on one platform category."""

    probe: VerificationProbe
    channels: tuple[InstallChannel, ...]
    architectures: frozenset[Architecture] | None = None
    notes: tuple[str, ...] = ()
    host: bool = False
    version: CommandVersion | None = None

    def supports(self, architecture: Architecture) -> bool:
        return self.architectures is None or architecture in self.architectures


__all__ = [
    "FailureKind",
    "Handler",
    "InstallOutcome",
    "InstallResult",
    "Requirement",
]
