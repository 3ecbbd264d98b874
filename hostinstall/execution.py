"""Async command execution utilities."""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Mapping, Protocol

DEFAULT_TIMEOUT = 30
INSTALL_TIMEOUT = 600

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Exit code and captured text of one external command."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Captured stdout, falling back to stderr when stdout is empty."""
        return self.stdout.strip() or self.stderr.strip()

    @property
    def transcript(self) -> str:
        """Both streams, stdout first, skipping whichever is empty."""
        return "\n".join(s for s in (self.stdout.strip(), self.stderr.strip()) if s)


@dataclass(frozen=True)
class EnvironmentDelta:
    """Search-path and variable changes an install asks its caller to apply.

    Installers never touch ``os.environ`` themselves; they return one of these
    and the caller decides whether to apply it to its own process state.
    """

    prepend_path: tuple[str, ...] = ()
    variables: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.prepend_path and not self.variables

    def merge(self, other: "EnvironmentDelta") -> "EnvironmentDelta":
        prepend = self.prepend_path + tuple(
            p for p in other.prepend_path if p not in self.prepend_path
        )
        variables = {**self.variables, **other.variables}
        return EnvironmentDelta(prepend_path=prepend, variables=variables)

    def apply(self, environ: Mapping[str, str]) -> dict[str, str]:
        """Return a copy of ``environ`` with this delta applied."""
        result = dict(environ)
        result.update(self.variables)
        if self.prepend_path:
            current = result.get("PATH", "")
            existing = current.split(os.pathsep) if current else []
            missing = [p for p in self.prepend_path if p not in existing]
            result["PATH"] = os.pathsep.join(missing + existing)
        return result


class Executor(Protocol):
    """Anything that can run a command and answer read-only presence queries."""

    timeout: int
    install_timeout: int

    async def run(self, command: str, timeout: int | None = None) -> ProcessResult:
        ...

    async def command_exists(self, name: str) -> bool:
        ...

    async def path_exists(self, path: str) -> bool:
        ...


async def run_command_async(
    command: str,
    timeout: int = DEFAULT_TIMEOUT,
    env: Mapping[str, str] | None = None,
) -> ProcessResult:
    """Run a command asynchronously and return its exit code and output.

    Spawn errors and timeouts never raise; they are reported as exit code 1
    with the reason in ``stderr``.
    """
    process = None
    try:
        _logging.debug(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=dict(env) if env is not None else None,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
            out = stdout.decode(errors="replace").replace("\r\n", "\n")
            err = stderr.decode(errors="replace").replace("\r\n", "\n")
            returncode = process.returncode if process.returncode is not None else 1
            if returncode != 0 and err:
                _logging.debug(f"stderr ({returncode}): {err.strip()}")
            return ProcessResult(returncode, out, err)
        except asyncio.TimeoutError:
            process.kill()
            _ = await process.wait()
            _logging.error(f"Command timed out after {timeout} seconds: {command}")
            return ProcessResult(1, "", f"Command timed out after {timeout} seconds")
    except Exception as e:
        _logging.error(
            f"Command execution failed: {type(e).__name__}: {e} | Command: {command}"
        )
        return ProcessResult(1, "", f"Error: {str(e)}")
    finally:
        if process:
            transport = getattr(process, "_transport", None)
            if transport:
                transport.close()


class LocalExecutor:
    """Runs commands in the current environment."""

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        install_timeout: int = INSTALL_TIMEOUT,
    ):
        self.env = dict(env) if env is not None else None
        self.timeout = timeout
        self.install_timeout = install_timeout

    def with_delta(self, delta: EnvironmentDelta) -> "LocalExecutor":
        """Return an executor whose child processes see ``delta`` applied."""
        base = self.env if self.env is not None else os.environ
        return LocalExecutor(
            env=delta.apply(base),
            timeout=self.timeout,
            install_timeout=self.install_timeout,
        )

    async def run(self, command: str, timeout: int | None = None) -> ProcessResult:
        return await run_command_async(
            command, timeout=timeout or self.timeout, env=self.env
        )

    async def command_exists(self, name: str) -> bool:
        search_path = self.env.get("PATH") if self.env is not None else None
        return shutil.which(name, path=search_path) is not None

    async def path_exists(self, path: str) -> bool:
        return os.path.exists(os.path.expandvars(os.path.expanduser(path)))


__all__ = [
    "DEFAULT_TIMEOUT",
    "INSTALL_TIMEOUT",
    "EnvironmentDelta",
    "Executor",
    "LocalExecutor",
    "ProcessResult",
    "run_command_async",
]
