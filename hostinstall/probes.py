"""Read-only presence checks composed into verification probes.

A ``VerificationProbe`` is an OR over primitive checks evaluated in declared
order; the first check that reports present wins and the rest are never run.
Checks only ever query state. A check that raises counts as "not present".
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from hostinstall.execution import Executor
from hostinstall.managers import PackageManager, extract_version

_logging = logging.getLogger(__name__)


class Check(ABC):
    @abstractmethod
    async def __call__(self) -> bool:
        ...

    @abstractmethod
    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class PathExists(Check):
    path: str
    executor: Executor

    async def __call__(self) -> bool:
        return await self.executor.path_exists(self.path)

    def describe(self) -> str:
        return f"path {self.path} exists"


@dataclass(frozen=True)
class CommandExists(Check):
    name: str
    executor: Executor

    async def __call__(self) -> bool:
        return await self.executor.command_exists(self.name)

    def describe(self) -> str:
        return f"command {self.name} is on PATH"


@dataclass(frozen=True)
class PackageInstalled(Check):
    manager: PackageManager
    package_id: str

    async def __call__(self) -> bool:
        return await self.manager.is_package_installed(self.package_id)

    def describe(self) -> str:
        return f"{self.manager.display_name} reports {self.package_id} installed"


@dataclass(frozen=True)
class VerificationProbe:
    checks: tuple[Check, ...]

    async def __call__(self) -> bool:
        for check in self.checks:
            try:
                present = await check()
            except Exception as e:
                _logging.debug(f"Probe check '{check.describe()}' raised {type(e).__name__}: {e}")
                present = False
            _logging.debug(f"Probe check '{check.describe()}': {present}")
            if present:
                return True
        return False

    def describe(self) -> list[str]:
        return [check.describe() for check in self.checks]


def any_of(*checks: Check) -> VerificationProbe:
    return VerificationProbe(tuple(checks))


@dataclass(frozen=True)
class CommandVersion:
    """Reads an installed version by running a version command."""

    command: str
    executor: Executor

    async def read(self) -> str | None:
        result = await self.executor.run(self.command)
        if not result.ok:
            return None
        return extract_version(result.output)


__all__ = [
    "Check",
    "CommandExists",
    "CommandVersion",
    "PackageInstalled",
    "PathExists",
    "VerificationProbe",
    "any_of",
]
