"""Rendering of resolved jobs and step plans for the terminal and for CI."""

import json
from collections.abc import Sequence
from typing import Any

import yaml

from cimatrix.models import Job
from cimatrix.steps import ResolvedStep
from cimatrix_cli.core.constants import UNSET_FIELD, OutputFormat


def job_columns(jobs: Sequence[Job]) -> list[str]:
    """Field names across all jobs, in order of first appearance."""
    columns: list[str] = []
    for job in jobs:
        for name in job.names:
            if name not in columns:
                columns.append(name)
    return columns


def render_jobs_table(jobs: Sequence[Job]) -> list[str]:
    """Render jobs as an aligned text table, one line per job.

    Fields a job does not define are shown as ``-``.
    """
    columns = job_columns(jobs)
    header = ["#", *columns]
    rows = [
        [str(index), *(job.get(col, UNSET_FIELD) or '""' for col in columns)]
        for index, job in enumerate(jobs)
    ]
    widths = [max(len(row[i]) for row in [header, *rows]) for i in range(len(header))]

    def line(cells: list[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()

    lines = [line(header), line(["-" * width for width in widths])]
    lines.extend(line(row) for row in rows)
    return lines


def github_matrix_output(jobs: Sequence[Job]) -> str:
    """Render jobs as a ``matrix=`` line for ``$GITHUB_OUTPUT``."""
    matrix = {"include": [job.to_dict() for job in jobs]}
    return f"matrix={json.dumps(matrix, separators=(',', ':'))}"


def plan_to_dict(job: Job, steps: Sequence[ResolvedStep]) -> dict[str, Any]:
    return {"job": job.to_dict(), "steps": [step.to_dict() for step in steps]}


def render_plan_text(index: int, job: Job, steps: Sequence[ResolvedStep]) -> list[str]:
    """Human readable plan for one job."""
    lines = [f"[{index}] {job.label}"]
    if not steps:
        lines.append("    (no steps)")
    for position, step in enumerate(steps, start=1):
        action = f" ({step.uses})" if step.uses else ""
        lines.append(f"  {position}. {step.id}{action}")
        for name, value in step.parameters.items():
            lines.append(f"       with.{name} = {_scalar(value)}")
        for name, value in step.env.items():
            lines.append(f"       env.{name} = {_scalar(value)}")
    return lines


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if "\n" in text:
        first, _, _ = text.partition("\n")
        return f"{first} ..."
    return text


def serialize(data: Any, fmt: str) -> str:
    """Serialize ``data`` as JSON or YAML."""
    if fmt == OutputFormat.YAML:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()
    return json.dumps(data, indent=2)
