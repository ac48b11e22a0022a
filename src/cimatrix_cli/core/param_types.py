"""Click ParamTypes for the cimatrix CLI."""

from __future__ import annotations

import click
from click import Context

from cimatrix.errors import ConfigurationError
from cimatrix.host import parse_fact_overrides


class HostFactParamType(click.ParamType):
    """``key=value`` host fact, converted to a ``(key, value)`` pair."""

    name = "key=value"

    def convert(self, value, param, ctx: Context | None):
        if isinstance(value, tuple):
            return value
        try:
            ((key, fact),) = parse_fact_overrides([value]).items()
        except ConfigurationError as e:
            self.fail(str(e), param, ctx)
        return key, fact


HOST_FACT = HostFactParamType()
