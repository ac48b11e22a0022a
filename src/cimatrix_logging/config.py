"""Logger configuration profiles for cimatrix.

Profiles:

- ``cli``: file logging to ``cli.log`` plus optional colored console output
- ``test``: no handlers of its own; records propagate to pytest's caplog
"""

import logging
import sys

from cimatrix_logging.formatters import DEFAULT_FORMAT, ColoredFormatter, SafeFormatter
from cimatrix_logging.utils import (
    get_log_file_path,
    get_log_level,
    should_use_console_logging,
    should_use_file_logging,
)

PROFILES = ("cli", "test")


def _clear(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.filters.clear()


def _configure_cli(
    logger: logging.Logger,
    to_console: bool,
    log_file: str | None,
) -> None:
    if log_file or should_use_file_logging():
        path = log_file or get_log_file_path("cli")
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(SafeFormatter(DEFAULT_FORMAT))
        logger.addHandler(file_handler)

    if to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredFormatter())
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False


def configure_logger(
    name: str,
    profile: str = "cli",
    level: str | None = None,
    to_console: bool | None = None,
    log_file: str | None = None,
) -> logging.Logger:
    """Configure a named logger according to a profile.

    Parameters
    ----------
    name : str
        Logger name, usually a package name
    profile : str
        One of ``cli`` or ``test``
    level : str | None
        Log level; defaults to ``CIMATRIX_LOG_LEVEL`` or ``INFO``
    to_console : bool | None
        Also log to stderr; defaults to ``CIMATRIX_CONSOLE_LOGGING``
    log_file : str | None
        Explicit log file path for the ``cli`` profile

    Returns
    -------
    logging.Logger
        The configured logger

    Raises
    ------
    ValueError
        If the profile is unknown
    """
    if profile not in PROFILES:
        msg = f"Unknown profile: {profile!r} (expected one of {', '.join(PROFILES)})"
        raise ValueError(msg)

    logger = logging.getLogger(name)
    _clear(logger)
    logger.setLevel(level.upper() if level else get_log_level())

    if profile == "test":
        logger.propagate = True
        return logger

    if to_console is None:
        to_console = should_use_console_logging()
    _configure_cli(logger, to_console, log_file)
    return logger


def get_cli_logger(name: str) -> logging.Logger:
    """Return the logger for a cimatrix module.

    Handlers are attached by ``configure_logger`` on the package loggers;
    module loggers only propagate to them.
    """
    return logging.getLogger(name)
