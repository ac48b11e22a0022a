"""Test environment setup and logging configuration."""

import logging
import os

LOGGED_PACKAGES = ("cimatrix", "cimatrix_cli", "cimatrix_common", "tests")


def configure_test_logging() -> None:
    """Configure cimatrix loggers for the test suite using cimatrix_logging.

    Loggers use the ``test`` profile so records propagate to pytest's caplog.
    The level comes from ``CIMATRIX_TEST_LOG_LEVEL`` (default ``DEBUG``).
    """
    from cimatrix_logging import configure_logger

    log_level = os.getenv("CIMATRIX_TEST_LOG_LEVEL", "DEBUG")
    for logger_name in LOGGED_PACKAGES:
        configure_logger(logger_name, profile="test", level=log_level)

    # Keep third-party loggers quiet
    logging.getLogger("yaml").setLevel(logging.WARNING)
