"""CI job-matrix expansion and conditional step planning.

Typical use::

    document = load_document(Path(".github/matrix.yaml"))
    for job in document.resolve():
        facts = document.host_facts_for(job)
        for step in document.plan(job, facts):
            ...
"""

from cimatrix.document import MatrixDocument, RunnerEntry
from cimatrix.errors import CimatrixError, ConfigurationError, ExpressionSyntaxError
from cimatrix.host import detect_host_facts, merge_facts, parse_fact_overrides
from cimatrix.models import Axis, AxisSet, ExcludeRule, IncludeRule, Job
from cimatrix.parser import MatrixDocumentParser, load_document
from cimatrix.resolver import MatrixResolver, resolve
from cimatrix.steps import (
    ResolvedStep,
    Step,
    StepPredicateEvaluator,
    plan,
    plan_matrix,
    qualifying_jobs,
)
from cimatrix.workflow import load_workflow_file, load_workflow_job

__all__ = [
    "Axis",
    "AxisSet",
    "CimatrixError",
    "ConfigurationError",
    "ExcludeRule",
    "ExpressionSyntaxError",
    "IncludeRule",
    "Job",
    "MatrixDocument",
    "MatrixDocumentParser",
    "MatrixResolver",
    "ResolvedStep",
    "RunnerEntry",
    "Step",
    "StepPredicateEvaluator",
    "detect_host_facts",
    "load_document",
    "load_workflow_file",
    "load_workflow_job",
    "merge_facts",
    "parse_fact_overrides",
    "plan",
    "plan_matrix",
    "qualifying_jobs",
    "resolve",
]
