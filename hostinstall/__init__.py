"""Install third-party applications through whichever package manager fits the host."""

import logging

__version__ = "0.1.0"

CLI_NAME = "hostinstall"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging once for the command-line entry point."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)


__all__ = [
    "CLI_NAME",
    "__version__",
    "setup_logging",
]
