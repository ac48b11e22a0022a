"""Tests for cimatrix_logging."""

import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from cimatrix_logging.config import configure_logger, get_cli_logger
from cimatrix_logging.formatters import ColoredFormatter, SafeFormatter
from cimatrix_logging.utils import (
    TRACE,
    get_log_file_path,
    get_log_level,
    should_use_console_logging,
    should_use_file_logging,
)


@pytest.fixture
def clean_logger() -> Generator[logging.Logger, None, None]:
    """Provide a logger without handlers and restore it afterwards."""
    logger = logging.getLogger("cimatrix_test_logger")
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True


def _record(level: int, message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("cimatrix", level, __file__, 1, message, None, None)


class TestConfigureLogger:
    """Tests for configure_logger function."""

    def test_sets_log_level_from_parameter(self, clean_logger: logging.Logger):
        configure_logger(clean_logger.name, profile="test", level="error")
        assert clean_logger.level == logging.ERROR

    def test_uses_default_log_level_when_not_specified(self, clean_logger):
        with patch("cimatrix_logging.config.get_log_level", return_value="WARNING"):
            configure_logger(clean_logger.name, profile="test")
        assert clean_logger.level == logging.WARNING

    def test_raises_error_for_invalid_profile(self, clean_logger):
        with pytest.raises(ValueError, match="Unknown profile"):
            configure_logger(clean_logger.name, profile="invalid")

    def test_test_profile_propagates_without_handlers(self, clean_logger):
        clean_logger.addHandler(logging.StreamHandler())

        configure_logger(clean_logger.name, profile="test")

        assert clean_logger.handlers == []
        assert clean_logger.propagate is True

    def test_cli_profile_writes_log_file(self, clean_logger, tmp_path: Path):
        log_file = tmp_path / "cli.log"

        configure_logger(
            clean_logger.name,
            profile="cli",
            level="DEBUG",
            to_console=False,
            log_file=str(log_file),
        )
        clean_logger.warning("resolved %d jobs", 13)
        for handler in clean_logger.handlers:
            handler.flush()

        assert "WARN" in log_file.read_text()
        assert "resolved 13 jobs" in log_file.read_text()
        assert clean_logger.propagate is False

    def test_cli_profile_console_only(self, clean_logger):
        configure_logger(clean_logger.name, profile="cli", to_console=True)

        assert len(clean_logger.handlers) == 1
        assert isinstance(clean_logger.handlers[0].formatter, ColoredFormatter)

    def test_cli_profile_without_outputs_gets_null_handler(self, clean_logger):
        configure_logger(clean_logger.name, profile="cli", to_console=False)

        assert isinstance(clean_logger.handlers[0], logging.NullHandler)

    def test_get_cli_logger(self):
        assert get_cli_logger("cimatrix.resolver").name == "cimatrix.resolver"


class TestFormatters:
    """Tests for SafeFormatter and ColoredFormatter."""

    def test_warning_is_shortened(self):
        formatter = SafeFormatter("%(levelname)s %(message)s")
        record = _record(logging.WARNING)

        assert formatter.format(record) == "WARN hello"
        assert record.levelname == "WARNING"

    def test_colors_disabled(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s", use_colors=False)
        assert formatter.format(_record(logging.ERROR)) == "ERROR hello"

    def test_colors_enabled_on_tty(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s")
        with patch.object(ColoredFormatter, "_should_use_colors", return_value=True):
            output = formatter.format(_record(logging.ERROR))

        assert output == f"{ColoredFormatter.COLORS['ERROR']}ERROR{ColoredFormatter.RESET} hello"

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert ColoredFormatter._should_use_colors() is False


class TestUtils:
    """Tests for environment helpers."""

    def test_trace_level_registered(self):
        assert logging.getLevelName(TRACE) == "TRACE"

    def test_get_log_level(self, monkeypatch):
        monkeypatch.setenv("CIMATRIX_LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"

    def test_invalid_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("CIMATRIX_LOG_LEVEL", "loud")
        assert get_log_level("warning") == "WARNING"

    def test_log_file_path_honors_log_dir(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("CIMATRIX_LOG_DIR", str(tmp_path / "logs"))

        path = get_log_file_path("cli")

        assert path == str(tmp_path / "logs" / "cli.log")
        assert (tmp_path / "logs").is_dir()

    def test_toggles(self, monkeypatch):
        monkeypatch.setenv("CIMATRIX_CONSOLE_LOGGING", "yes")
        monkeypatch.setenv("CIMATRIX_FILE_LOGGING", "0")

        assert should_use_console_logging() is True
        assert should_use_file_logging() is False
