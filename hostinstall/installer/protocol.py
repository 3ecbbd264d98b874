"""The idempotent install protocol.

CHECK_INSTALLED -> CHECK_PREREQUISITE -> EXECUTE -> VERIFY, strictly in that
order. Channels are attempted in declared order. A channel whose prerequisite
is missing or whose install command fails hands over to the next one; none is
retried. A verification failure is terminal, since the install command did
run and later channels would only pile a second copy on top of it.
"""

import logging
from dataclasses import dataclass

from hostinstall.channels import InstallChannel
from hostinstall.managers import InstallOptions

from .models import FailureKind, Handler, InstallResult

_logging = logging.getLogger(__name__)

# longest slice of captured output quoted in a failure message
OUTPUT_EXCERPT = 2000


@dataclass
class _Attempt:
    channel: InstallChannel
    failure: FailureKind
    message: str
    remediation: list[str]


def _excerpt(text: str) -> str:
    text = text.strip()
    if len(text) <= OUTPUT_EXCERPT:
        return text
    return "..." + text[-OUTPUT_EXCERPT:]


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _combine(name: str, attempts: list[_Attempt]) -> InstallResult:
    last = attempts[-1]
    remediation = _dedupe([step for a in attempts for step in a.remediation])
    if len(attempts) == 1:
        return InstallResult.failed(
            last.failure, last.message, remediation, channel=last.channel.describe()
        )
    lines = [f"All {len(attempts)} install channels for {name} failed:"]
    for attempt in attempts:
        first_line, _, rest = attempt.message.partition("\n")
        lines.append(f"  - {attempt.channel.describe()}: {first_line}")
        if rest:
            lines.extend(f"      {line}" for line in rest.splitlines())
    return InstallResult.failed(
        last.failure, "\n".join(lines), remediation, channel=last.channel.describe()
    )


async def run_install_protocol(
    name: str, handler: Handler, options: InstallOptions | None = None
) -> InstallResult:
    """Run the protocol for one target on one platform.

    Never raises for install failures; every outcome is an ``InstallResult``.
    """
    options = options or InstallOptions()

    if await handler.probe():
        _logging.debug(f"{name}: probe reports present, nothing to do")
        return InstallResult.skipped(f"{name} is already installed, skipping installation.")

    attempts: list[_Attempt] = []
    for channel in handler.channels:
        missing = await channel.check_prerequisite()
        if missing is not None:
            _logging.debug(f"{name}: {channel.describe()} unavailable: {missing.message}")
            attempts.append(
                _Attempt(
                    channel,
                    FailureKind.MISSING_PREREQUISITE,
                    f"Cannot install {name}: {missing.message}.",
                    list(missing.remediation),
                )
            )
            continue

        _logging.info(f"Installing {name} via {channel.describe()}")
        run = await channel.execute(options)
        if not run.result.ok:
            output = _excerpt(run.result.transcript)
            message = (
                f"Installing {name} via {channel.describe()} failed "
                f"(exit code {run.result.exit_code})."
            )
            if output:
                message += f"\n{output}"
            attempts.append(
                _Attempt(
                    channel,
                    FailureKind.EXECUTION_FAILURE,
                    message,
                    channel.remediation(),
                )
            )
            continue

        if await handler.probe():
            return InstallResult.installed(
                f"{name} installed via {channel.describe()}.",
                channel=channel.describe(),
                env_delta=run.env_delta,
            )

        checks = "; ".join(handler.probe.describe())
        remediation = [
            f"Check whether {name} was installed to a non-standard location",
            f"Expected one of: {checks}",
        ]
        if not run.env_delta.is_empty:
            remediation.append(
                "Open a new shell (or apply the PATH changes) and run the check again"
            )
        return InstallResult.failed(
            FailureKind.VERIFICATION_FAILURE,
            f"{channel.describe()} reported success but {name} was not found afterwards.",
            remediation,
            channel=channel.describe(),
        )

    if not attempts:
        return InstallResult.failed(
            FailureKind.MISSING_PREREQUISITE,
            f"No install channel is declared for {name} on this platform.",
        )
    return _combine(name, attempts)


__all__ = [
    "OUTPUT_EXCERPT",
    "run_install_protocol",
]
