"""Exception hierarchy for matrix resolution and step planning."""

from typing import Any


class CimatrixError(Exception):
    """Base class for all cimatrix errors."""


class ConfigurationError(CimatrixError):
    """Raised when a matrix definition or step list is malformed.

    Always fatal. Raised before any job or step plan is produced so the
    definition can be corrected in place.

    Parameters
    ----------
    message : str
        Human readable description of the problem
    rule_kind : str | None
        ``"include"`` or ``"exclude"`` when a rule triggered the error
    rule_index : int | None
        Zero-based position of the offending rule in its list
    rule : dict[str, Any] | None
        Content of the offending rule
    field : str | None
        Field name the error refers to
    step_id : str | None
        Identifier of the offending step
    """

    def __init__(
        self,
        message: str,
        *,
        rule_kind: str | None = None,
        rule_index: int | None = None,
        rule: dict[str, Any] | None = None,
        field: str | None = None,
        step_id: str | None = None,
    ) -> None:
        self.rule_kind = rule_kind
        self.rule_index = rule_index
        self.rule = rule
        self.field = field
        self.step_id = step_id
        super().__init__(self._compose(message))

    def _compose(self, message: str) -> str:
        parts = []
        if self.rule_kind is not None and self.rule_index is not None:
            parts.append(f"{self.rule_kind}[{self.rule_index}] {self.rule!r}")
        if self.step_id is not None:
            parts.append(f"step '{self.step_id}'")
        if not parts:
            return message
        return f"{': '.join(parts)}: {message}"


class ExpressionSyntaxError(ConfigurationError):
    """Raised when a predicate or parameter expression cannot be parsed.

    Parameters
    ----------
    message : str
        Description of the syntax problem
    expression : str
        Full expression text
    position : int
        Character offset where parsing failed
    """

    def __init__(
        self,
        message: str,
        expression: str,
        position: int,
        **kwargs: Any,
    ) -> None:
        self.expression = expression
        self.position = position
        super().__init__(
            f"{message} at position {position} in expression {expression!r}",
            **kwargs,
        )
