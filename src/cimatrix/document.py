"""Matrix document: a complete matrix definition plus its steps."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cimatrix.errors import ConfigurationError
from cimatrix.host import HostFacts, merge_facts
from cimatrix.models import AxisSet, ExcludeRule, FieldItems, IncludeRule, Job
from cimatrix.resolver import MatrixResolver, resolve
from cimatrix.steps import ResolvedStep, Step, plan, plan_matrix, qualifying_jobs


@dataclass(frozen=True)
class RunnerEntry:
    """Host facts for jobs whose fields match ``match``.

    An empty ``match`` applies to every job.
    """

    match: FieldItems
    facts: HostFacts


@dataclass(frozen=True)
class MatrixDocument:
    """Parsed matrix definition.

    Parameters
    ----------
    axes : AxisSet
        Declared axes
    includes : tuple[IncludeRule, ...]
        Include rules in declaration order
    excludes : tuple[ExcludeRule, ...]
        Exclude rules
    steps : tuple[Step, ...]
        Declared steps in order
    defaults : Mapping[str, str]
        Values for job fields that may be absent from a job
    runners : tuple[RunnerEntry, ...]
        Host facts per declared axis value
    """

    axes: AxisSet
    includes: tuple[IncludeRule, ...] = ()
    excludes: tuple[ExcludeRule, ...] = ()
    steps: tuple[Step, ...] = ()
    defaults: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    runners: tuple[RunnerEntry, ...] = ()

    @property
    def field_names(self) -> frozenset[str]:
        """Every job field the definition can produce or defaults."""
        names = set(self.axes.names)
        for rule in self.includes:
            names.update(rule.names)
        names.update(self.defaults)
        return frozenset(names)

    def resolve(self) -> tuple[Job, ...]:
        return resolve(self.axes, self.includes, self.excludes)

    def unreachable_includes(self) -> list[IncludeRule]:
        return MatrixResolver.find_unreachable_includes(self.axes, self.includes)

    def host_facts_for(
        self,
        job: Job,
        base: Mapping[str, str] | None = None,
        overrides: Mapping[str, str] | None = None,
    ) -> HostFacts:
        """Host facts for ``job``: base, then matching runner entries, then overrides."""
        layers = [base]
        layers.extend(entry.facts for entry in self.runners if job.matches(entry.match))
        layers.append(overrides)
        return merge_facts(*layers)

    def plan(self, job: Job, host_facts: Mapping[str, str]) -> tuple[ResolvedStep, ...]:
        return plan(job, host_facts, self.steps, self.defaults)

    def plan_all(
        self,
        base: Mapping[str, str] | None = None,
        overrides: Mapping[str, str] | None = None,
    ) -> tuple[tuple[Job, tuple[ResolvedStep, ...]], ...]:
        """Resolve the matrix and plan every job on its runner's facts."""
        return plan_matrix(
            self.resolve(),
            self.steps,
            lambda job: self.host_facts_for(job, base, overrides),
            self.defaults,
        )

    def qualifying_jobs(
        self,
        step_id: str,
        base: Mapping[str, str] | None = None,
        overrides: Mapping[str, str] | None = None,
    ) -> tuple[Job, ...]:
        """Jobs whose plan runs ``step_id``."""
        if all(step.id != step_id for step in self.steps):
            msg = "no step with this id is declared"
            raise ConfigurationError(msg, step_id=step_id)
        return qualifying_jobs(
            self.resolve(),
            self.steps,
            step_id,
            lambda job: self.host_facts_for(job, base, overrides),
            self.defaults,
        )
