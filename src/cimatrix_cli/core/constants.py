"""Constants for the cimatrix CLI."""

from enum import Enum


class ExitCode:
    """Exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    NOT_FOUND = 2
    CONFIG_ERROR = 3


class Icons:
    """Unicode icons for CLI output.

    Reserved for errors, section headers and status indicators.
    """

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "📄"
    MATRIX = "🧮"
    PLAN = "📋"
    GEAR = "⚙️"


class LogLevel(Enum):
    """Log levels accepted by --log-level."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


ALL_LOG_LEVELS = tuple(LogLevel)


class EnvVars:
    """Environment variables read or set by the CLI."""

    LOG_LEVEL = "CIMATRIX_LOG_LEVEL"
    CONSOLE_LOGGING = "CIMATRIX_CONSOLE_LOGGING"


class OutputFormat:
    """Output formats for matrix commands."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"
    GITHUB = "github"
    TEXT = "text"

    RESOLVE_FORMATS = (TABLE, JSON, YAML, GITHUB)
    PLAN_FORMATS = (TEXT, JSON, YAML)


# Placeholder shown in tables for fields a job does not define
UNSET_FIELD = "-"

LOGGING_PACKAGES = ("cimatrix", "cimatrix_cli", "cimatrix_common")
