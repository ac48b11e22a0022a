"""Import a matrix definition from a GitHub Actions workflow job.

The job's ``strategy.matrix`` becomes the axes and include/exclude rules, its
steps keep their ``if:`` predicates and ``with`` / ``env`` / ``run``
parameters. Fields added only by include rows default to the empty string,
as an unset ``matrix.<field>`` does in a workflow.
"""

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cimatrix.document import MatrixDocument
from cimatrix.errors import ConfigurationError
from cimatrix.parser import STEP_KEYS, MatrixDocumentParser
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)

MATRIX_RULE_KEYS = ("include", "exclude")

_MATRIX_REF_RE = re.compile(r"^\$\{\{\s*matrix\.([A-Za-z_][A-Za-z0-9_-]*)\s*\}\}$")

# Runner label prefixes and the runner.os value jobs on them report
RUNNER_OS_PREFIXES = (
    ("ubuntu", "Linux"),
    ("linux", "Linux"),
    ("macos", "macOS"),
    ("windows", "Windows"),
)


def infer_runner_os(label: str) -> str | None:
    """Infer ``runner.os`` from a runner label such as ``ubuntu-22.04``."""
    lowered = label.lower()
    for prefix, runner_os in RUNNER_OS_PREFIXES:
        if lowered.startswith(prefix):
            return runner_os
    return None


def find_matrix_job(workflow: Mapping[str, Any], job_name: str | None = None) -> str:
    """Return ``job_name`` or the first job that declares a matrix.

    Raises
    ------
    ConfigurationError
        If the job does not exist or no job declares a matrix
    """
    jobs = workflow.get("jobs") or {}
    if not isinstance(jobs, Mapping):
        msg = "workflow 'jobs' must be a mapping"
        raise ConfigurationError(msg, field="jobs")

    if job_name is not None:
        if job_name not in jobs:
            available = ", ".join(jobs) or "none"
            msg = f"workflow has no job '{job_name}' (available: {available})"
            raise ConfigurationError(msg, field=job_name)
        return job_name

    for name, job in jobs.items():
        if isinstance(job, Mapping) and "matrix" in (job.get("strategy") or {}):
            return name
    msg = "workflow has no job with a strategy.matrix"
    raise ConfigurationError(msg, field="jobs")


def _runners_for(runs_on: Any, axes: Mapping[str, list]) -> list[dict[str, Any]]:
    """Build runner table entries from a job's ``runs-on`` value."""
    if not isinstance(runs_on, str):
        return []

    match = _MATRIX_REF_RE.match(runs_on.strip())
    if match is None:
        runner_os = infer_runner_os(runs_on)
        return [{"match": {}, "facts": {"os": runner_os}}] if runner_os else []

    axis = match.group(1)
    entries = []
    for value in axes.get(axis, []):
        runner_os = infer_runner_os(str(value))
        if runner_os is None:
            logger.debug("Cannot infer runner OS for %s=%s", axis, value)
            continue
        entries.append({"match": {axis: value}, "facts": {"os": runner_os}})
    return entries


def workflow_job_to_document(
    workflow: Mapping[str, Any],
    job_name: str | None = None,
) -> dict[str, Any]:
    """Translate a workflow job into the native document mapping.

    Args
    ----
        workflow: Parsed workflow YAML
        job_name: Job to import; defaults to the first job with a matrix

    Returns
    -------
        Native matrix document mapping
    """
    name = find_matrix_job(workflow, job_name)
    job = workflow["jobs"][name]
    if not isinstance(job, Mapping):
        msg = f"job '{name}' must be a mapping"
        raise ConfigurationError(msg, field=name)

    matrix = (job.get("strategy") or {}).get("matrix")
    if matrix is None:
        matrix = {}
    if isinstance(matrix, str):
        msg = (
            f"job '{name}' uses a dynamic matrix ({matrix}); "
            "only literal matrices are supported"
        )
        raise ConfigurationError(msg, field="matrix")
    if not isinstance(matrix, Mapping):
        msg = f"job '{name}' strategy.matrix must be a mapping"
        raise ConfigurationError(msg, field="matrix")

    axes = {key: value for key, value in matrix.items() if key not in MATRIX_RULE_KEYS}
    includes = matrix.get("include") or []
    excludes = matrix.get("exclude") or []

    defaults: dict[str, str] = {}
    for rule in includes:
        if isinstance(rule, Mapping):
            for field_name in rule:
                if field_name not in axes:
                    defaults.setdefault(field_name, "")

    steps = []
    for step in job.get("steps") or []:
        if isinstance(step, Mapping):
            dropped = sorted(set(step) - STEP_KEYS)
            if dropped:
                logger.debug("Dropping runner-only step keys: %s", dropped)
            steps.append({k: v for k, v in step.items() if k in STEP_KEYS})

    logger.debug(
        "Imported workflow job '%s': %d axes, %d include, %d exclude, %d steps",
        name,
        len(axes),
        len(includes),
        len(excludes),
        len(steps),
    )
    return {
        "name": name,
        "axes": axes,
        "include": includes,
        "exclude": excludes,
        "defaults": defaults,
        "runners": _runners_for(job.get("runs-on"), axes),
        "steps": steps,
    }


def load_workflow_job(
    workflow: Mapping[str, Any],
    job_name: str | None = None,
) -> MatrixDocument:
    """Parse a workflow job into a MatrixDocument."""
    return MatrixDocumentParser().parse_document(
        workflow_job_to_document(workflow, job_name),
    )


def load_workflow_file(path: Path, job_name: str | None = None) -> MatrixDocument:
    """Load a workflow YAML file and import one of its matrix jobs."""
    from cimatrix_common.io import safe_read_yaml

    return load_workflow_job(safe_read_yaml(path), job_name)
