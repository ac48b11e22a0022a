"""Default output strategy implementation."""

from __future__ import annotations

import shutil

import click

from cimatrix_cli.core.output.verbosity import Verbosity


class OutputStrategy:
    """Unified output strategy with verbosity contracts.

    | Level    | Flag      | User Sees                          |
    |----------|-----------|------------------------------------|
    | NORMAL   | (default) | Results, errors, warnings          |
    | VERBOSE  | -v        | + Resolution details               |
    | DEBUG    | -vvv      | + Debug messages                   |

    Results go to stdout; errors and warnings go to stderr so that
    machine-readable output stays parseable.

    Parameters
    ----------
    verbosity : Verbosity
        Current verbosity level
    """

    def __init__(self, verbosity: Verbosity = Verbosity.NORMAL) -> None:
        self._verbosity = verbosity
        self._last_was_blank = False

    @property
    def verbosity(self) -> Verbosity:
        """Current verbosity level."""
        return self._verbosity

    def _emit(
        self,
        message: str,
        *,
        err: bool = False,
        style: dict | None = None,
    ) -> None:
        """Emit a message with optional styling and blank line coalescing."""
        if not message or message.strip() == "":
            if self._last_was_blank:
                return
            click.echo("", err=err)
            self._last_was_blank = True
            return

        rendered = click.style(message, **style) if style else message
        click.echo(rendered, err=err)
        self._last_was_blank = False

    def error(self, message: str) -> None:
        """Display error message (red, stderr). Always visible."""
        from cimatrix_cli.core.constants import Icons

        self._emit(f"{Icons.ERROR} {message}", err=True, style={"fg": "red"})

    def warning(self, message: str) -> None:
        """Display warning message (yellow, stderr). Always visible."""
        self._emit(message, err=True, style={"fg": "yellow"})

    def success(self, message: str) -> None:
        """Display success message (green). Always visible."""
        self._emit(message, style={"fg": "green"})

    def result(self, message: str) -> None:
        """Display result output without styling. Always visible."""
        self._emit(message)

    def plain(self, message: str, err: bool = False) -> None:
        """Display plain message without formatting. Always visible.

        Parameters
        ----------
        message : str
            Plain message
        err : bool
            Whether to send to stderr
        """
        self._emit(message, err=err)

    def section(self, title: str, icon: str | None = None) -> None:
        """Display section heading with separator. Always visible."""
        width = self._get_separator_width()
        icon_prefix = f"{icon} " if icon else ""
        click.echo("-" * width)
        click.echo(f"{icon_prefix}{title}:")
        click.echo("-" * width)
        self._last_was_blank = False

    def info(self, message: str) -> None:
        """Display info message. Visible at VERBOSE+."""
        if self._verbosity >= Verbosity.VERBOSE:
            self._emit(message, err=True)

    def debug(self, message: str) -> None:
        """Display debug message (cyan). Visible at DEBUG only."""
        if self._verbosity >= Verbosity.DEBUG:
            self._emit(f"[DEBUG] {message}", err=True, style={"fg": "cyan"})

    def _get_separator_width(self) -> int:
        """Terminal width - 2, minimum 40."""
        try:
            terminal_size = shutil.get_terminal_size()
            return max(40, terminal_size.columns - 2)
        except Exception:
            return 60
