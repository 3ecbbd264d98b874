"""Interactive target picker.

questionary prompts run only when stdin is a TTY; callers in CI or pipes get
a RuntimeError and should ask for an explicit target instead.
"""

import sys

import questionary
from prompt_toolkit.styles import Style

from hostinstall.installer import TargetInstaller

PICKER_STYLE = Style(
    [
        ("installed", "fg:ansigray"),
        ("available", ""),
    ]
)


def format_target_choice(installer: TargetInstaller, installed: bool, width: int = 16) -> str:
    """Format one target for the picker list.

    Example output:
        ⬜ jq               - Lightweight command-line JSON processor
    """
    icon = "✅" if installed else "⬜"
    return f"{icon} {installer.name:<{width}} - {installer.description}"


def select_target_interactive(
    installers: list[TargetInstaller],
    installed: set[str] | None = None,
) -> str | None:
    """Let the user pick one target to install.

    Args:
        installers: Targets eligible on this platform
        installed: Names already present; shown but dimmed

    Returns:
        The chosen target name, or None if the user cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    if not sys.stdin.isatty():
        raise RuntimeError("Interactive target picker requires a TTY")

    if not installers:
        return None

    installed = installed or set()
    width = max(len(i.name) for i in installers) + 2
    choices = []
    for installer in installers:
        is_present = installer.name in installed
        label = format_target_choice(installer, is_present, width)
        css = "class:installed" if is_present else "class:available"
        choices.append(questionary.Choice(title=[(css, label)], value=installer.name))

    try:
        return questionary.select(
            "Select a target to install:",
            choices=choices,
            style=PICKER_STYLE,
        ).ask()
    except KeyboardInterrupt:
        return None


__all__ = [
    "PICKER_STYLE",
    "format_target_choice",
    "select_target_interactive",
]
