"""Logging for the `epicstyle` logger tree.

Library modules only call `get_logger(__name__)`; handlers are installed
by the command line through `setup_logging`.
"""
import logging
import sys

LOGGER_NAME = "epicstyle"

DEFAULT_FORMAT = "%(levelname)s: %(message)s"
# Verbose runs also name the module, which helps trace per-file warnings.
VERBOSE_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Install a single stderr handler on the epicstyle logger.

    Calling it again replaces the previous handler.

    Args:
        verbose: Log progress at INFO level
        quiet: Log only errors; wins over verbose
    """
    level = _level_for(verbose, quiet)

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(VERBOSE_FORMAT if verbose and not quiet else DEFAULT_FORMAT)
    )
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the epicstyle tree.

    Args:
        name: Usually `__name__`; names outside the tree are nested under it

    Returns:
        Logger instance
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
