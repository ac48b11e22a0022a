"""Step applicability and parameter resolution for resolved jobs."""

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from cimatrix.expressions import (
    Expression,
    Reference,
    Scope,
    Template,
    as_text,
    truthy,
)
from cimatrix.models import Job
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)

ParameterValue = str | bool


@dataclass(frozen=True)
class LiteralParameter:
    """A constant parameter value."""

    value: ParameterValue

    def resolve(self, scope: Scope) -> ParameterValue:
        return self.value

    def references(self) -> Iterator[Reference]:
        yield from ()


@dataclass(frozen=True)
class TemplateParameter:
    """Text with ``${{ }}`` placeholders, always resolving to a string."""

    template: Template

    def resolve(self, scope: Scope) -> ParameterValue:
        return self.template.render(scope)

    def references(self) -> Iterator[Reference]:
        yield from self.template.references()


@dataclass(frozen=True)
class ExpressionParameter:
    """A single expression; resolves to a string or a boolean."""

    expression: Expression

    def resolve(self, scope: Scope) -> ParameterValue:
        return self.expression.evaluate(scope)

    def references(self) -> Iterator[Reference]:
        yield from self.expression.references()


@dataclass(frozen=True)
class JoinParameter:
    """Concatenation of optional values, e.g. a combined flags string.

    A reference to a job field that is absent from the job contributes
    nothing instead of failing, as do empty values. Only the job fields
    listed in ``optional`` may be absent; any other missing field is a
    configuration error.
    """

    parts: tuple[Expression, ...]
    separator: str = " "
    optional: frozenset[str] = frozenset()

    def resolve(self, scope: Scope) -> ParameterValue:
        values = []
        for part in self.parts:
            if (
                isinstance(part, Reference)
                and part.is_job_field
                and part.name in self.optional
                and not scope.has(part.context, part.name)
            ):
                continue
            text = as_text(part.evaluate(scope))
            if text:
                values.append(text)
        return self.separator.join(values)

    def references(self) -> Iterator[Reference]:
        for part in self.parts:
            yield from part.references()


Parameter = LiteralParameter | TemplateParameter | ExpressionParameter | JoinParameter


@dataclass(frozen=True)
class Step:
    """A conditionally applicable unit of work within a job.

    Parameters
    ----------
    id : str
        Unique step identifier
    name : str
        Display name
    uses : str | None
        Opaque reference to the external action that runs the step
    condition : Expression | None
        Applicability predicate; ``None`` means the step always applies
    parameters : Mapping[str, Parameter]
        Parameter expressions in declaration order
    env : Mapping[str, Parameter]
        Environment variable expressions in declaration order
    """

    id: str
    name: str
    uses: str | None = None
    condition: Expression | None = None
    parameters: Mapping[str, Parameter] = field(default_factory=dict)
    env: Mapping[str, Parameter] = field(default_factory=dict)

    def references(self) -> Iterator[Reference]:
        """Every reference made by the predicate, parameters and env."""
        if self.condition is not None:
            yield from self.condition.references()
        for parameter in (*self.parameters.values(), *self.env.values()):
            yield from parameter.references()


@dataclass(frozen=True)
class ResolvedStep:
    """A step that applies to a job, with concrete parameter bindings."""

    id: str
    name: str
    uses: str | None
    parameters: Mapping[str, ParameterValue]
    env: Mapping[str, str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "uses": self.uses,
            "with": dict(self.parameters),
            "env": dict(self.env),
        }


class StepPredicateEvaluator:
    """Computes the ordered list of steps a job runs."""

    @staticmethod
    def applies(step: Step, scope: Scope) -> bool:
        if step.condition is None:
            return True
        return truthy(step.condition.evaluate(scope))

    @staticmethod
    def resolve_step(step: Step, scope: Scope) -> ResolvedStep:
        parameters = {
            name: parameter.resolve(scope) for name, parameter in step.parameters.items()
        }
        env = {name: as_text(value.resolve(scope)) for name, value in step.env.items()}
        return ResolvedStep(
            id=step.id,
            name=step.name,
            uses=step.uses,
            parameters=MappingProxyType(parameters),
            env=MappingProxyType(env),
        )

    @staticmethod
    def plan(
        job: Job,
        host_facts: Mapping[str, str],
        steps: Sequence[Step],
        defaults: Mapping[str, str] | None = None,
    ) -> tuple[ResolvedStep, ...]:
        """Build the execution plan for one job.

        Parameters
        ----------
        job : Job
            Resolved job
        host_facts : Mapping[str, str]
            Facts about the host the job executes on
        steps : Sequence[Step]
            Declared steps in order
        defaults : Mapping[str, str] | None
            Values for job fields that may be absent

        Returns
        -------
        tuple[ResolvedStep, ...]
            Steps that apply, in declaration order

        Raises
        ------
        ConfigurationError
            If a predicate or parameter references a missing field or fact
        """
        resolved = []
        for step in steps:
            scope = Scope(job, host_facts, defaults, step_id=step.id)
            if not StepPredicateEvaluator.applies(step, scope):
                logger.debug("Step '%s' skipped for %s", step.id, job.label)
                continue
            resolved.append(StepPredicateEvaluator.resolve_step(step, scope))
        return tuple(resolved)


def plan(
    job: Job,
    host_facts: Mapping[str, str],
    steps: Sequence[Step],
    defaults: Mapping[str, str] | None = None,
) -> tuple[ResolvedStep, ...]:
    """Return the steps ``job`` runs on a host with ``host_facts``."""
    return StepPredicateEvaluator.plan(job, host_facts, steps, defaults)


def plan_matrix(
    jobs: Sequence[Job],
    steps: Sequence[Step],
    host_facts_for: Callable[[Job], Mapping[str, str]],
    defaults: Mapping[str, str] | None = None,
) -> tuple[tuple[Job, tuple[ResolvedStep, ...]], ...]:
    """Plan every job; fails as a whole on the first configuration error."""
    return tuple(
        (job, StepPredicateEvaluator.plan(job, host_facts_for(job), steps, defaults))
        for job in jobs
    )


def qualifying_jobs(
    jobs: Sequence[Job],
    steps: Sequence[Step],
    step_id: str,
    host_facts_for: Callable[[Job], Mapping[str, str]],
    defaults: Mapping[str, str] | None = None,
) -> tuple[Job, ...]:
    """Return the jobs whose plan includes ``step_id`` (e.g. coverage upload)."""
    planned = plan_matrix(jobs, steps, host_facts_for, defaults)
    return tuple(
        job for job, resolved in planned if any(s.id == step_id for s in resolved)
    )
