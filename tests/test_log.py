"""Tests for logging setup."""

import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from appcenter_upload.log import configure_logging, level_for


@pytest.mark.parametrize(
    "verbosity, level",
    [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_level_for(verbosity, level):
    assert level_for(verbosity) == level


def test_configure_logging_installs_one_rich_handler():
    console = Console(record=True, width=120)

    configure_logging(1, console)
    package_logger = configure_logging(1, console)

    assert package_logger.level == logging.INFO
    assert len(package_logger.handlers) == 1
    assert isinstance(package_logger.handlers[0], RichHandler)

    logging.getLogger("appcenter_upload.pipeline.upload").info("[AppCenter] - hello")
    assert "[AppCenter] - hello" in console.export_text()
