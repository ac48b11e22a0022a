"""Custom Click decorators for common CLI patterns."""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import click

from cimatrix.errors import CimatrixError, ConfigurationError
from cimatrix_cli.core.constants import ExitCode
from cimatrix_common.io import FileOperationError
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _report(message: str) -> None:
    ctx = click.get_current_context()
    output = getattr(ctx.obj, "output", None)
    if output is not None:
        output.error(message)
    else:
        click.echo(f"Error: {message}", err=True)


def handle_exceptions(func: F) -> F:
    """Convert cimatrix errors into messages and exit codes.

    Parameters
    ----------
    func : Callable
        Command callback to wrap

    Returns
    -------
    Callable
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except ConfigurationError as e:
            logger.debug("Configuration error: %s", e)
            _report(f"Configuration error: {e}")
            ctx.exit(ExitCode.CONFIG_ERROR)
        except FileOperationError as e:
            logger.debug("File error: %s", e)
            _report(str(e))
            ctx.exit(ExitCode.GENERAL_ERROR)
        except CimatrixError as e:
            logger.debug("cimatrix error: %s", e)
            _report(str(e))
            ctx.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]
