"""Parser for converting matrix documents into typed definitions."""

import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from cimatrix.document import MatrixDocument, RunnerEntry
from cimatrix.errors import ConfigurationError
from cimatrix.expressions import parse_expression, parse_template
from cimatrix.host import freeze
from cimatrix.models import (
    AxisSet,
    ExcludeRule,
    IncludeRule,
    normalize_value,
)
from cimatrix.steps import (
    ExpressionParameter,
    JoinParameter,
    LiteralParameter,
    Parameter,
    Step,
    TemplateParameter,
)
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)

TOP_LEVEL_KEYS = frozenset(
    {"axes", "include", "exclude", "defaults", "runners", "steps", "name"},
)
STEP_KEYS = frozenset({"id", "name", "uses", "if", "with", "env", "run", "shell"})

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Turn a step name into an identifier, e.g. ``Install grcov`` -> ``install-grcov``."""
    return _SLUG_RE.sub("-", name.lower()).strip("-")


class MatrixDocumentParser:
    """Parse matrix documents (YAML/JSON mappings) into a MatrixDocument."""

    def __init__(self) -> None:
        """Initialize parser with parameter kind mapping."""
        self._parameter_parsers = {
            "expr": self.parse_expression_parameter,
            "join": self.parse_join_parameter,
        }

    def parse_file(self, file_path: Path) -> MatrixDocument:
        """Parse a matrix document from a YAML or JSON file.

        Args
        ----
            file_path: Path to the document

        Returns
        -------
            Parsed MatrixDocument
        """
        from cimatrix_common.io import safe_read_yaml

        data = safe_read_yaml(file_path)
        logger.debug("Parsing matrix document %s", file_path)
        return self.parse_document(data)

    def parse_document(self, data: Mapping[str, Any]) -> MatrixDocument:
        """Parse a full document.

        Args
        ----
            data: Document mapping

        Returns
        -------
            Parsed and validated MatrixDocument
        """
        if not isinstance(data, Mapping):
            msg = "matrix document must be a mapping"
            raise ConfigurationError(msg)

        for key in data:
            if key not in TOP_LEVEL_KEYS:
                logger.warning("Ignoring unknown document key: %s", key)

        axes_data = data.get("axes") or {}
        if not isinstance(axes_data, Mapping):
            msg = "'axes' must map axis names to lists of values"
            raise ConfigurationError(msg, field="axes")

        document = MatrixDocument(
            axes=AxisSet.from_mapping(axes_data),
            includes=self.parse_rules(IncludeRule, data.get("include")),
            excludes=self.parse_rules(ExcludeRule, data.get("exclude")),
            steps=self.parse_steps(data.get("steps")),
            defaults=self.parse_defaults(data.get("defaults")),
            runners=self.parse_runners(data.get("runners")),
        )
        self.validate_references(document)
        return document

    def parse_rules(self, rule_cls, rules_data: Any) -> tuple:
        """Parse an include or exclude list."""
        if rules_data is None:
            return ()
        if not isinstance(rules_data, list):
            msg = f"'{rule_cls.kind}' must be a list of mappings"
            raise ConfigurationError(msg, field=rule_cls.kind)
        return tuple(
            rule_cls.from_mapping(index, raw) for index, raw in enumerate(rules_data)
        )

    def parse_defaults(self, defaults_data: Any) -> Mapping[str, str]:
        """Parse declared defaults for absence-tolerant fields."""
        if defaults_data is None:
            return MappingProxyType({})
        if not isinstance(defaults_data, Mapping):
            msg = "'defaults' must map field names to values"
            raise ConfigurationError(msg, field="defaults")
        defaults = {}
        for name, value in defaults_data.items():
            try:
                defaults[str(name)] = normalize_value(value)
            except ValueError as e:
                msg = f"default for '{name}': {e}"
                raise ConfigurationError(msg, field=str(name)) from e
        return MappingProxyType(defaults)

    def parse_runners(self, runners_data: Any) -> tuple[RunnerEntry, ...]:
        """Parse the runner table mapping job fields to host facts."""
        if runners_data is None:
            return ()
        if not isinstance(runners_data, list):
            msg = "'runners' must be a list of {match, facts} entries"
            raise ConfigurationError(msg, field="runners")

        entries = []
        for index, entry in enumerate(runners_data):
            if not isinstance(entry, Mapping) or "facts" not in entry:
                msg = f"runners[{index}] must be a mapping with a 'facts' key"
                raise ConfigurationError(msg, field="runners")
            match = entry.get("match") or {}
            if not isinstance(match, Mapping) or not isinstance(entry["facts"], Mapping):
                msg = f"runners[{index}] 'match' and 'facts' must be mappings"
                raise ConfigurationError(msg, field="runners")
            try:
                items = tuple((str(k), normalize_value(v)) for k, v in match.items())
            except ValueError as e:
                msg = f"runners[{index}] match: {e}"
                raise ConfigurationError(msg, field="runners") from e
            entries.append(RunnerEntry(match=items, facts=freeze(entry["facts"])))
        return tuple(entries)

    def parse_steps(self, steps_data: Any) -> tuple[Step, ...]:
        """Parse the step list, assigning unique ids."""
        if steps_data is None:
            return ()
        if not isinstance(steps_data, list):
            msg = "'steps' must be a list"
            raise ConfigurationError(msg, field="steps")

        steps: list[Step] = []
        seen: set[str] = set()
        for index, step_data in enumerate(steps_data):
            if not isinstance(step_data, Mapping):
                msg = f"steps[{index}] must be a mapping"
                raise ConfigurationError(msg, field="steps")

            explicit_id = step_data.get("id")
            if explicit_id is not None:
                step_id = str(explicit_id)
                if step_id in seen:
                    msg = "duplicate step id"
                    raise ConfigurationError(msg, step_id=step_id)
            else:
                base = slugify(str(step_data.get("name") or "")) or f"step-{index}"
                step_id = base
                suffix = 2
                while step_id in seen:
                    step_id = f"{base}-{suffix}"
                    suffix += 1

            seen.add(step_id)
            steps.append(self.parse_step(step_id, step_data))
        return tuple(steps)

    def parse_step(self, step_id: str, data: Mapping[str, Any]) -> Step:
        """Parse a single step."""
        for key in data:
            if key not in STEP_KEYS:
                logger.warning("Step '%s': ignoring unknown key '%s'", step_id, key)

        condition = None
        raw_condition = data.get("if")
        if raw_condition is not None:
            if isinstance(raw_condition, bool):
                condition = parse_expression("true" if raw_condition else "false")
            else:
                condition = parse_expression(str(raw_condition), step_id=step_id)

        parameters = self.parse_parameters(step_id, data.get("with"))
        for key in ("run", "shell"):
            if key in data:
                parameters[key] = self.parse_parameter(step_id, key, data[key])

        return Step(
            id=step_id,
            name=str(data.get("name") or step_id),
            uses=data.get("uses"),
            condition=condition,
            parameters=MappingProxyType(parameters),
            env=MappingProxyType(self.parse_parameters(step_id, data.get("env"))),
        )

    def parse_parameters(self, step_id: str, data: Any) -> dict[str, Parameter]:
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            msg = "'with' and 'env' must be mappings"
            raise ConfigurationError(msg, step_id=step_id)
        return {
            str(name): self.parse_parameter(step_id, str(name), raw)
            for name, raw in data.items()
        }

    def parse_parameter(self, step_id: str, name: str, raw: Any) -> Parameter:
        """Parse one parameter expression.

        Strings are templates, scalars are literals and single-key mappings
        select a parameter kind (``expr`` or ``join``).
        """
        if isinstance(raw, bool):
            return LiteralParameter(raw)
        if isinstance(raw, str):
            if "${{" in raw:
                return TemplateParameter(parse_template(raw, step_id=step_id))
            return LiteralParameter(raw)
        if isinstance(raw, Mapping):
            kinds = [key for key in raw if key in self._parameter_parsers]
            if len(kinds) != 1:
                known = ", ".join(sorted(self._parameter_parsers))
                msg = f"parameter '{name}' must use exactly one of: {known}"
                raise ConfigurationError(msg, step_id=step_id, field=name)
            return self._parameter_parsers[kinds[0]](step_id, name, raw)
        try:
            return LiteralParameter(normalize_value(raw))
        except ValueError as e:
            msg = f"parameter '{name}': {e}"
            raise ConfigurationError(msg, step_id=step_id, field=name) from e

    def parse_expression_parameter(
        self,
        step_id: str,
        name: str,
        raw: Mapping[str, Any],
    ) -> ExpressionParameter:
        """Parse ``{expr: "<expression>"}``."""
        return ExpressionParameter(parse_expression(str(raw["expr"]), step_id=step_id))

    def parse_join_parameter(
        self,
        step_id: str,
        name: str,
        raw: Mapping[str, Any],
    ) -> JoinParameter:
        """Parse ``{join: [refs...], separator: " "}``.

        Every job field referenced directly by a join is absence tolerant.
        """
        parts_data = raw["join"]
        if not isinstance(parts_data, list):
            msg = f"parameter '{name}': 'join' must be a list of expressions"
            raise ConfigurationError(msg, step_id=step_id, field=name)
        parts = tuple(parse_expression(str(p), step_id=step_id) for p in parts_data)
        optional = frozenset(
            ref.name for part in parts for ref in part.references() if ref.is_job_field
        )
        return JoinParameter(
            parts=parts,
            separator=str(raw.get("separator", " ")),
            optional=optional,
        )

    def validate_references(self, document: MatrixDocument) -> None:
        """Reject steps referencing job fields the matrix can never define.

        Raises
        ------
        ConfigurationError
            If a step references an unknown job field
        """
        known = document.field_names
        for step in document.steps:
            for ref in step.references():
                if ref.is_job_field and ref.name not in known:
                    msg = (
                        f"references unknown job field '{ref}' (not an axis, "
                        "include field or declared default)"
                    )
                    raise ConfigurationError(msg, step_id=step.id, field=ref.name)


def load_document(path: Path) -> MatrixDocument:
    """Load a native matrix document from ``path``."""
    return MatrixDocumentParser().parse_file(path)
