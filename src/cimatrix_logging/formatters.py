"""Log formatters for cimatrix."""

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


class SafeFormatter(logging.Formatter):
    """Formatter that shortens WARNING to WARN and tolerates foreign records."""

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        if record.levelname == "WARNING":
            record.levelname = "WARN"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class ColoredFormatter(SafeFormatter):
    """Console formatter coloring the level name by severity."""

    COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str = CONSOLE_FORMAT,
        datefmt: str | None = None,
        use_colors: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    @staticmethod
    def _should_use_colors() -> bool:
        if os.getenv("NO_COLOR"):
            return False
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not (self.use_colors and self._should_use_colors()):
            return super().format(record)

        original = record.levelname
        color = self.COLORS.get(original, "")
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return logging.Formatter.format(self, record)
        finally:
            record.levelname = original
