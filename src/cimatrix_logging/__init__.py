"""Logging setup shared by the cimatrix packages."""

from cimatrix_logging.config import configure_logger, get_cli_logger
from cimatrix_logging.utils import TRACE, get_log_file_path, get_log_level

__all__ = [
    "TRACE",
    "configure_logger",
    "get_cli_logger",
    "get_log_file_path",
    "get_log_level",
]
