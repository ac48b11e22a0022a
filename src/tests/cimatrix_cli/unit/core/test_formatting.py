"""Tests for cimatrix_cli.core.formatting and param types."""

import json
from types import MappingProxyType

import click
import pytest

from cimatrix.models import Job
from cimatrix.steps import ResolvedStep
from cimatrix_cli.core.formatting import (
    github_matrix_output,
    job_columns,
    plan_to_dict,
    render_jobs_table,
    render_plan_text,
    serialize,
)
from cimatrix_cli.core.output import Verbosity
from cimatrix_cli.core.param_types import HOST_FACT


@pytest.fixture
def jobs() -> tuple[Job, ...]:
    return (
        Job.from_mapping({"os": "linux", "suite": "std", "cache": "stable"}),
        Job.from_mapping({"os": "win", "suite": "std", "wgpu": ""}),
    )


@pytest.fixture
def resolved_steps() -> tuple[ResolvedStep, ...]:
    return (
        ResolvedStep(
            id="run",
            name="run",
            uses=None,
            parameters=MappingProxyType({"run": "make\nmake test", "fast": True}),
            env=MappingProxyType({"CI": "true"}),
        ),
    )


@pytest.mark.unit
class TestJobRendering:
    """Tests for job tables and CI output."""

    def test_columns_in_order_of_first_appearance(self, jobs):
        assert job_columns(jobs) == ["os", "suite", "cache", "wgpu"]

    def test_table_marks_unset_and_empty_fields(self, jobs):
        lines = render_jobs_table(jobs)

        assert lines[0].split() == ["#", "os", "suite", "cache", "wgpu"]
        assert lines[2].split() == ["0", "linux", "std", "stable", "-"]
        assert lines[3].split() == ["1", "win", "std", "-", '""']

    def test_github_output(self, jobs):
        key, _, payload = github_matrix_output(jobs).partition("=")

        assert key == "matrix"
        assert json.loads(payload)["include"][1] == {"os": "win", "suite": "std", "wgpu": ""}

    def test_serialize(self):
        assert json.loads(serialize([{"a": "1"}], "json")) == [{"a": "1"}]
        assert serialize([{"a": "1"}], "yaml") == "- a: '1'"


@pytest.mark.unit
class TestPlanRendering:
    """Tests for step plan rendering."""

    def test_text(self, jobs, resolved_steps):
        lines = render_plan_text(3, jobs[0], resolved_steps)

        assert lines == [
            "[3] linux, std, stable",
            "  1. run",
            "       with.run = make ...",
            "       with.fast = true",
            "       env.CI = true",
        ]

    def test_no_steps(self, jobs):
        assert render_plan_text(0, jobs[0], ())[-1] == "    (no steps)"

    def test_plan_to_dict(self, jobs, resolved_steps):
        data = plan_to_dict(jobs[0], resolved_steps)

        assert data["job"] == {"os": "linux", "suite": "std", "cache": "stable"}
        assert data["steps"][0]["with"] == {"run": "make\nmake test", "fast": True}


@pytest.mark.unit
class TestHostFactParamType:
    """Tests for the --host parameter type."""

    def test_converts_pair(self):
        assert HOST_FACT.convert("os=Linux", None, None) == ("os", "Linux")

    def test_rejects_missing_equals(self):
        with pytest.raises(click.BadParameter, match="key=value"):
            HOST_FACT.convert("Linux", None, None)


@pytest.mark.unit
class TestVerbosity:
    """Tests for Verbosity.from_flags."""

    @pytest.mark.parametrize(
        ("verbose", "verbose_debug", "expected"),
        [
            (False, False, Verbosity.NORMAL),
            (True, False, Verbosity.VERBOSE),
            (True, True, Verbosity.DEBUG),
        ],
    )
    def test_from_flags(self, verbose, verbose_debug, expected):
        assert Verbosity.from_flags(verbose, verbose_debug) is expected
