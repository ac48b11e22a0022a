"""Predicate and parameter expressions over job fields and host facts.

Expressions use the familiar workflow syntax::

    host.os == 'Linux' && job.toolchain == 'stable' && !(job.suite == 'nostd')

``job.<field>`` and ``matrix.<field>`` read resolved job fields;
``host.<fact>``, ``hostFacts.<fact>`` and ``runner.<fact>`` read host facts.
Values are strings or booleans. Comparisons are exact string comparisons and
``&&`` / ``||`` short-circuit on truthiness (non-empty string or ``true``).

Templates embed expressions in literal text with ``${{ ... }}`` placeholders.
Placeholders rooted in any other context (``secrets``, ``github``,
``hashFiles(...)``) are left in place for the external runner.
"""

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from cimatrix.errors import ConfigurationError, ExpressionSyntaxError
from cimatrix.models import Job

JOB_CONTEXTS = frozenset({"job", "matrix"})
HOST_CONTEXTS = frozenset({"host", "hostFacts", "runner"})
KNOWN_CONTEXTS = JOB_CONTEXTS | HOST_CONTEXTS

Value = str | bool

_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("AND", r"&&"),
    ("OR", r"\|\|"),
    ("EQ", r"=="),
    ("NE", r"!="),
    ("NOT", r"!"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("NUMBER", r"\d+(?:\.\d+)*"),
    ("STRING", r"'(?:[^']|'')*'|\"[^\"]*\""),
    ("REF", r"[A-Za-z_][A-Za-z0-9_]*\.[A-Za-z_][A-Za-z0-9_-]*"),
    ("WORD", r"[A-Za-z_][A-Za-z0-9_-]*"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{rx})" for name, rx in _TOKEN_SPEC))
_TEMPLATE_RE = re.compile(r"\$\{\{\s*(.*?)\s*\}\}", re.DOTALL)
_LEADING_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def as_text(value: Value) -> str:
    """Render an expression value as a string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def truthy(value: Value) -> bool:
    if isinstance(value, bool):
        return value
    return value != ""


class Scope:
    """Values visible to an expression while evaluating one step for one job.

    Parameters
    ----------
    job : Job
        Resolved job
    host_facts : Mapping[str, str]
        Facts about the executing host
    defaults : Mapping[str, str] | None
        Values for job fields that may be absent from a job
    step_id : str | None
        Step being evaluated, used in error messages
    """

    def __init__(
        self,
        job: Job,
        host_facts: Mapping[str, str],
        defaults: Mapping[str, str] | None = None,
        step_id: str | None = None,
    ) -> None:
        self.job = job
        self.host_facts = host_facts
        self.defaults = defaults or {}
        self.step_id = step_id

    def has(self, context: str, name: str) -> bool:
        """Whether the reference is present on the job/host (defaults excluded)."""
        if context in JOB_CONTEXTS:
            return name in self.job
        return name in self.host_facts

    def lookup(self, context: str, name: str) -> str:
        """Resolve a reference.

        Raises
        ------
        ConfigurationError
            If the field is missing and has no declared default
        """
        if context in JOB_CONTEXTS:
            value = self.job.get(name)
            if value is not None:
                return value
            if name in self.defaults:
                return self.defaults[name]
            msg = (
                f"job field '{name}' is not set on job {self.job.to_dict()!r} "
                "and has no declared default"
            )
            raise ConfigurationError(msg, field=name, step_id=self.step_id)

        if name in self.host_facts:
            return self.host_facts[name]
        msg = f"host fact '{name}' was not supplied"
        raise ConfigurationError(msg, field=name, step_id=self.step_id)


@dataclass(frozen=True)
class Literal:
    value: Value

    def evaluate(self, scope: Scope) -> Value:
        return self.value

    def references(self) -> Iterator["Reference"]:
        yield from ()


@dataclass(frozen=True)
class Reference:
    context: str
    name: str

    @property
    def is_job_field(self) -> bool:
        return self.context in JOB_CONTEXTS

    def evaluate(self, scope: Scope) -> Value:
        return scope.lookup(self.context, self.name)

    def references(self) -> Iterator["Reference"]:
        yield self

    def __str__(self) -> str:
        return f"{self.context}.{self.name}"


@dataclass(frozen=True)
class Not:
    operand: "Expression"

    def evaluate(self, scope: Scope) -> Value:
        return not truthy(self.operand.evaluate(scope))

    def references(self) -> Iterator[Reference]:
        yield from self.operand.references()


@dataclass(frozen=True)
class Compare:
    op: str
    left: "Expression"
    right: "Expression"

    def evaluate(self, scope: Scope) -> Value:
        equal = as_text(self.left.evaluate(scope)) == as_text(
            self.right.evaluate(scope),
        )
        return equal if self.op == "==" else not equal

    def references(self) -> Iterator[Reference]:
        yield from self.left.references()
        yield from self.right.references()


@dataclass(frozen=True)
class Logical:
    op: str
    operands: tuple["Expression", ...]

    def evaluate(self, scope: Scope) -> Value:
        # Returns the deciding operand's value, like the workflow language
        value: Value = self.op == "&&"
        for operand in self.operands:
            value = operand.evaluate(scope)
            if self.op == "&&" and not truthy(value):
                return value
            if self.op == "||" and truthy(value):
                return value
        return value

    def references(self) -> Iterator[Reference]:
        for operand in self.operands:
            yield from operand.references()


Expression = Literal | Reference | Not | Compare | Logical


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    position: int


def _tokenize(text: str, step_id: str | None) -> list[_Token]:
    tokens = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            msg = f"unexpected character {text[position]!r}"
            raise ExpressionSyntaxError(msg, text, position, step_id=step_id)
        kind = match.lastgroup or ""
        if kind != "WS":
            tokens.append(_Token(kind, match.group(), position))
        position = match.end()
    tokens.append(_Token("END", "", len(text)))
    return tokens


class _Parser:
    """Recursive descent parser for the expression grammar."""

    def __init__(self, text: str, step_id: str | None) -> None:
        self.text = text
        self.step_id = step_id
        self.tokens = _tokenize(text, step_id)
        self.pos = 0

    def _peek(self) -> _Token:
        return self.tokens[self.pos]

    def _advance(self) -> _Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _fail(self, message: str, token: _Token) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(
            message,
            self.text,
            token.position,
            step_id=self.step_id,
        )

    def parse(self) -> Expression:
        if self._peek().kind == "END":
            raise self._fail("empty expression", self._peek())
        node = self._or()
        token = self._peek()
        if token.kind != "END":
            raise self._fail(f"unexpected token {token.text!r}", token)
        return node

    def _or(self) -> Expression:
        operands = [self._and()]
        while self._peek().kind == "OR":
            self._advance()
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else Logical("||", tuple(operands))

    def _and(self) -> Expression:
        operands = [self._unary()]
        while self._peek().kind == "AND":
            self._advance()
            operands.append(self._unary())
        return operands[0] if len(operands) == 1 else Logical("&&", tuple(operands))

    def _unary(self) -> Expression:
        if self._peek().kind == "NOT":
            self._advance()
            return Not(self._unary())
        return self._compare()

    def _compare(self) -> Expression:
        left = self._primary()
        if self._peek().kind in ("EQ", "NE"):
            op = self._advance().text
            right = self._primary()
            return Compare(op, left, right)
        return left

    def _primary(self) -> Expression:
        token = self._advance()
        if token.kind == "STRING":
            quote = token.text[0]
            body = token.text[1:-1]
            if quote == "'":
                body = body.replace("''", "'")
            return Literal(body)
        if token.kind == "NUMBER":
            return Literal(token.text)
        if token.kind == "WORD":
            if token.text == "true":
                return Literal(True)
            if token.text == "false":
                return Literal(False)
            raise self._fail(f"unknown identifier {token.text!r}", token)
        if token.kind == "REF":
            context, name = token.text.split(".", 1)
            if context not in KNOWN_CONTEXTS:
                known = ", ".join(sorted(KNOWN_CONTEXTS))
                raise self._fail(
                    f"unknown context {context!r} (expected one of {known})",
                    token,
                )
            return Reference(context, name)
        if token.kind == "LPAREN":
            node = self._or()
            closing = self._advance()
            if closing.kind != "RPAREN":
                raise self._fail("expected ')'", closing)
            return node
        if token.kind == "END":
            raise self._fail("unexpected end of expression", token)
        raise self._fail(f"unexpected token {token.text!r}", token)


def parse_expression(text: str, step_id: str | None = None) -> Expression:
    """Parse an expression string into an expression tree.

    Raises
    ------
    ExpressionSyntaxError
        If the text is not a valid expression
    """
    return _Parser(unwrap_expression(text), step_id).parse()


def unwrap_expression(text: str) -> str:
    """Strip a single enclosing ``${{ }}`` as used by workflow ``if:`` keys."""
    stripped = text.strip()
    match = _TEMPLATE_RE.fullmatch(stripped)
    return match.group(1) if match else stripped


@dataclass(frozen=True)
class Template:
    """Literal text with embedded expressions.

    ``parts`` holds literal strings and parsed expressions in order.
    """

    source: str
    parts: tuple[str | Expression, ...]

    def render(self, scope: Scope) -> str:
        chunks = []
        for part in self.parts:
            if isinstance(part, str):
                chunks.append(part)
            else:
                chunks.append(as_text(part.evaluate(scope)))
        return "".join(chunks)

    def references(self) -> Iterator[Reference]:
        for part in self.parts:
            if not isinstance(part, str):
                yield from part.references()


def _is_passthrough(inner: str) -> bool:
    match = _LEADING_NAME_RE.match(inner)
    if match is None:
        return False
    name = match.group()
    return name not in KNOWN_CONTEXTS and name not in ("true", "false")


def parse_template(text: str, step_id: str | None = None) -> Template:
    """Parse a template string with ``${{ }}`` placeholders.

    Raises
    ------
    ExpressionSyntaxError
        If a placeholder rooted in a known context is invalid
    """
    parts: list[str | Expression] = []
    last = 0
    for match in _TEMPLATE_RE.finditer(text):
        inner = match.group(1)
        if _is_passthrough(inner):
            continue
        if match.start() > last:
            parts.append(text[last : match.start()])
        parts.append(_Parser(inner, step_id).parse())
        last = match.end()
    if last < len(text):
        parts.append(text[last:])
    return Template(source=text, parts=tuple(parts))
