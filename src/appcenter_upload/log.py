"""Logging setup for the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "appcenter_upload"


def level_for(verbosity: int) -> int:
    """0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int = 0, console: Console | None = None) -> logging.Logger:
    """Send package logs to a rich handler at the level chosen by verbosity."""
    handler = RichHandler(console=console or Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level_for(verbosity))
    package_logger.propagate = False
    return package_logger
