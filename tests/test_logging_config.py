import logging

import pytest

from epicstyle.logging_config import (
    DEFAULT_FORMAT,
    VERBOSE_FORMAT,
    get_logger,
    setup_logging,
)


@pytest.mark.parametrize(
    "verbose,quiet,level",
    [
        (False, False, logging.WARNING),
        (True, False, logging.INFO),
        (False, True, logging.ERROR),
        (True, True, logging.ERROR),
    ],
)
def test_setup_logging_levels(verbose, quiet, level):
    """Test level selection, quiet winning over verbose."""
    setup_logging(verbose=verbose, quiet=quiet)

    assert get_logger("epicstyle.indexer").getEffectiveLevel() == level


def test_verbose_format_names_module():
    """Test that verbose output includes the logger name."""
    setup_logging(verbose=True)
    handler = logging.getLogger("epicstyle").handlers[0]
    assert handler.formatter._fmt == VERBOSE_FORMAT

    setup_logging()
    handler = logging.getLogger("epicstyle").handlers[0]
    assert handler.formatter._fmt == DEFAULT_FORMAT


def test_setup_logging_replaces_handlers():
    """Test that repeated setup does not stack handlers."""
    setup_logging()
    setup_logging(quiet=True)

    assert len(logging.getLogger("epicstyle").handlers) == 1


def test_get_logger_nests_names():
    """Test that loggers always live under the epicstyle tree."""
    assert get_logger("epicstyle").name == "epicstyle"
    assert get_logger("epicstyle.rules").name == "epicstyle.rules"
    assert get_logger("helpers").name == "epicstyle.helpers"
    assert get_logger("epicstyleish").name == "epicstyle.epicstyleish"
