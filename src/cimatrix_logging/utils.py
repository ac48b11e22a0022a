"""Environment helpers for cimatrix logging."""

import logging
import os
from pathlib import Path

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_LOG_LEVEL = "CIMATRIX_LOG_LEVEL"
ENV_LOG_DIR = "CIMATRIX_LOG_DIR"
ENV_CONSOLE_LOGGING = "CIMATRIX_CONSOLE_LOGGING"
ENV_FILE_LOGGING = "CIMATRIX_FILE_LOGGING"

_TRUTHY = ("1", "true", "yes", "on")


def get_log_level(default: str = "INFO") -> str:
    """Return the log level from ``CIMATRIX_LOG_LEVEL`` or ``default``.

    Invalid values fall back to ``default``; valid ones are upper-cased.
    """
    value = os.getenv(ENV_LOG_LEVEL, "").strip().upper()
    if value in VALID_LOG_LEVELS:
        return value
    return default.upper()


def get_log_dir() -> Path:
    env_dir = os.getenv(ENV_LOG_DIR)
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".cimatrix" / "log"


def get_log_file_path(
    name: str,
    filename: str | None = None,
    log_dir: str | None = None,
) -> str:
    """Return the log file path for ``name``, creating its directory.

    Parameters
    ----------
    name : str
        Log name, e.g. ``cli``
    filename : str | None
        Explicit file name, defaults to ``<name>.log``
    log_dir : str | None
        Explicit directory, defaults to ``CIMATRIX_LOG_DIR`` or ``~/.cimatrix/log``

    Returns
    -------
    str
        Absolute log file path
    """
    directory = Path(log_dir) if log_dir else get_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return str(directory / (filename or f"{name}.log"))


def should_use_console_logging() -> bool:
    return os.getenv(ENV_CONSOLE_LOGGING, "").strip().lower() in _TRUTHY


def should_use_file_logging() -> bool:
    return os.getenv(ENV_FILE_LOGGING, "1").strip().lower() in _TRUTHY
