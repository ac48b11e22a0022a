"""Main CLI entry point for cimatrix.

This module provides the main Click command group and wires the matrix
subcommands into it.
"""

import os
from pathlib import Path
from typing import Any

import click

from cimatrix_cli import __version__
from cimatrix_cli.commands import matrix
from cimatrix_cli.core.constants import (
    ALL_LOG_LEVELS,
    LOGGING_PACKAGES,
    EnvVars,
    LogLevel,
)
from cimatrix_cli.core.output import OutputStrategy, Verbosity
from cimatrix_common.config import load_merged_config
from cimatrix_common.repo import detect_repo_root
from cimatrix_logging import configure_logger, get_cli_logger

logger = get_cli_logger(__name__)


def _configure_logging_environment(
    verbose: bool,
    verbose_debug: bool,
    log_level: str | None,
) -> str | None:
    """Configure logging environment variables based on CLI flags.

    Parameters
    ----------
    verbose : bool
        Whether -v verbose mode is enabled
    verbose_debug : bool
        Whether -vvv verbose debug mode is enabled
    log_level : str | None
        Explicit log level if provided

    Returns
    -------
    str | None
        The effective log level to use, or None if no logging changes needed
    """
    if log_level:
        os.environ[EnvVars.LOG_LEVEL] = log_level
        return log_level

    if verbose_debug:
        os.environ[EnvVars.LOG_LEVEL] = LogLevel.TRACE.value
        os.environ[EnvVars.CONSOLE_LOGGING] = "1"
        return LogLevel.TRACE.value

    if verbose:
        os.environ[EnvVars.LOG_LEVEL] = LogLevel.DEBUG.value
        return LogLevel.DEBUG.value

    return None


def _configure_package_loggers(effective_level: str, verbose_debug: bool) -> None:
    for pkg_name in LOGGING_PACKAGES:
        configure_logger(
            pkg_name,
            profile="cli",
            level=effective_level,
            to_console=verbose_debug,
        )


class Context:
    """CLI context object for sharing state between commands."""

    def __init__(self, repo_root: Path | None = None) -> None:
        """Initialize CLI context.

        Parameters
        ----------
        repo_root : Path, optional
            Repository root directory. If not provided, will be auto-detected.
        """
        self.verbose: bool = False
        self.verbose_debug: bool = False
        self.repo_root: Path = repo_root or detect_repo_root()
        self._config: dict[str, Any] | None = None
        self._output: OutputStrategy | None = None

    @property
    def config(self) -> dict[str, Any]:
        """Merged default, user and project configuration.

        Returns
        -------
        dict[str, Any]
            Configuration loaded on first access
        """
        if self._config is None:
            self._config = load_merged_config(self.repo_root)
        return self._config

    @property
    def output(self) -> OutputStrategy:
        """Get output strategy singleton instance.

        Returns
        -------
        OutputStrategy
            Output strategy configured with current verbosity
        """
        if self._output is None:
            verbosity = Verbosity.from_flags(self.verbose, self.verbose_debug)
            self._output = OutputStrategy(verbosity=verbosity)
        return self._output


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.version_option(__version__, prog_name="cimatrix")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show resolution details",
)
@click.option(
    "--verbose-debug",
    "-vvv",
    is_flag=True,
    help="Show debug output and log to the console",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in ALL_LOG_LEVELS]),
    help="Set logging level",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    verbose_debug: bool,
    log_level: str | None,
) -> None:
    """cimatrix - CI job matrix expansion and step planning.

    Expands axis/include/exclude matrix definitions into concrete jobs and
    shows which conditional steps each job runs.
    """
    if not isinstance(ctx.obj, Context):
        ctx.obj = Context()
    ctx.obj.verbose = verbose or verbose_debug
    ctx.obj.verbose_debug = verbose_debug

    effective_level = _configure_logging_environment(verbose, verbose_debug, log_level)
    if effective_level is None and os.getenv(EnvVars.LOG_LEVEL) is None:
        configured = ctx.obj.config.get("defaults", {}).get("log_level")
        if configured and configured.upper() != LogLevel.INFO.value:
            effective_level = configured.upper()

    if effective_level:
        _configure_package_loggers(effective_level, verbose_debug)
        logger.debug(
            "cimatrix started (repo_root=%s, level=%s)",
            ctx.obj.repo_root,
            effective_level,
        )


cli.add_command(matrix.resolve)
cli.add_command(matrix.plan)
cli.add_command(matrix.validate)
cli.add_command(matrix.qualify)


def main() -> None:
    """Console script entry point."""
    cli(prog_name="cimatrix")


if __name__ == "__main__":
    main()
