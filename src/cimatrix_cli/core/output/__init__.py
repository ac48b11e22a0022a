"""Output strategy module for unified CLI output with verbosity contracts.

Usage
-----
>>> from cimatrix_cli.core.output import OutputStrategy, Verbosity
>>>
>>> # In a command:
>>> output = ctx.obj.output
>>> output.result("...")
>>> output.info("Additional details...")  # Only shown with -v
"""

from cimatrix_cli.core.output.strategy import OutputStrategy
from cimatrix_cli.core.output.verbosity import Verbosity

__all__ = [
    "OutputStrategy",
    "Verbosity",
]
