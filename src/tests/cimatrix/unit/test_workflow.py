"""Tests for importing matrix jobs from GitHub Actions workflows."""

import pytest

from cimatrix.errors import ConfigurationError
from cimatrix.workflow import (
    find_matrix_job,
    infer_runner_os,
    load_workflow_file,
    load_workflow_job,
    workflow_job_to_document,
)


@pytest.fixture
def burn_document(burn_workflow_path):
    return load_workflow_file(burn_workflow_path)


@pytest.mark.unit
class TestInferRunnerOs:
    """Tests for infer_runner_os."""

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("ubuntu-22.04", "Linux"),
            ("macos-13", "macOS"),
            ("windows-2022", "Windows"),
            ("self-hosted", None),
        ],
    )
    def test_labels(self, label, expected):
        assert infer_runner_os(label) == expected


@pytest.mark.unit
class TestFindMatrixJob:
    """Tests for find_matrix_job."""

    def test_first_job_with_matrix(self):
        workflow = {
            "jobs": {
                "lint": {"runs-on": "ubuntu-22.04"},
                "tests": {"strategy": {"matrix": {"os": ["a"]}}},
            },
        }

        assert find_matrix_job(workflow) == "tests"

    def test_unknown_job(self):
        with pytest.raises(ConfigurationError, match="no job 'build'"):
            find_matrix_job({"jobs": {"tests": {}}}, "build")

    def test_no_matrix_job(self):
        with pytest.raises(ConfigurationError, match="no job with a strategy.matrix"):
            find_matrix_job({"jobs": {"lint": {"runs-on": "ubuntu-22.04"}}})


@pytest.mark.unit
class TestWorkflowJobToDocument:
    """Tests for the workflow to document translation."""

    def test_include_only_fields_default_to_empty(self, burn_workflow_path):
        from cimatrix_common.io import safe_read_yaml

        data = workflow_job_to_document(safe_read_yaml(burn_workflow_path))

        assert data["name"] == "tests"
        assert data["defaults"] == {"cache": "", "coverage-flags": "", "wgpu-flags": ""}
        assert data["runners"] == [
            {"match": {"os": "macos-13"}, "facts": {"os": "macOS"}},
            {"match": {"os": "ubuntu-22.04"}, "facts": {"os": "Linux"}},
            {"match": {"os": "windows-2022"}, "facts": {"os": "Windows"}},
        ]

    def test_static_runs_on(self):
        data = workflow_job_to_document(
            {"jobs": {"t": {"runs-on": "ubuntu-22.04", "strategy": {"matrix": {"v": [1]}}}}},
        )

        assert data["runners"] == [{"match": {}, "facts": {"os": "Linux"}}]

    def test_dynamic_matrix_is_rejected(self):
        workflow = {"jobs": {"t": {"strategy": {"matrix": "${{ fromJSON(needs.a.outputs.m) }}"}}}}

        with pytest.raises(ConfigurationError, match="dynamic matrix"):
            workflow_job_to_document(workflow, "t")

    def test_runner_only_step_keys_are_dropped(self):
        workflow = {
            "jobs": {
                "t": {
                    "strategy": {"matrix": {"v": ["1"]}},
                    "steps": [{"name": "x", "timeout-minutes": 5, "continue-on-error": True}],
                },
            },
        }

        assert workflow_job_to_document(workflow)["steps"] == [{"name": "x"}]


@pytest.mark.unit
class TestBurnWorkflow:
    """End to end checks against a real workflow."""

    def test_resolves_to_11_jobs(self, burn_document):
        jobs = burn_document.resolve()

        assert len(jobs) == 11
        assert {job["rust"] for job in jobs} == {"stable", "1.71.0"}
        assert not any(job["rust"] == "1.71.0" and job["test"] == "examples" for job in jobs)

    def test_step_ids(self, burn_document):
        ids = [step.id for step in burn_document.steps]

        assert ids[0] == "checkout"
        assert "codecov-upload" in ids
        assert "windows-install-warp" in ids

    def test_coverage_upload_runs_on_one_job(self, burn_document):
        jobs = burn_document.qualifying_jobs("codecov-upload")

        assert [job.label for job in jobs] == [
            "ubuntu-22.04, stable, std, stable, COVERAGE=1",
        ]

    def test_windows_steps_follow_runner_os(self, burn_document):
        jobs = burn_document.qualifying_jobs("windows-install-mesa")

        assert len(jobs) == 3
        assert {job["os"] for job in jobs} == {"windows-2022"}

    def test_host_override_wins_over_runner_table(self, burn_document):
        jobs = burn_document.qualifying_jobs("free-disk-space", overrides={"os": "Linux"})
        assert len(jobs) == 11

    def test_plan_renders_parameters(self, burn_document):
        job = next(j for j in burn_document.resolve() if "coverage-flags" in j)
        steps = {s.id: s for s in burn_document.plan(job, burn_document.host_facts_for(job))}

        assert steps["install-rust"].parameters["toolchain"] == "stable"
        assert steps["caching"].parameters["key"] == (
            "Linux-stable-std-${{ hashFiles('**/Cargo.toml') }}"
        )
        assert steps["run-cargo-clippy-for-stable-version"].parameters["github_token"] == (
            "${{ secrets.GITHUB_TOKEN }}"
        )
        assert steps["run-checks-tests"].parameters["run"] == (
            "COVERAGE=1  cargo xtask run-checks std"
        )
        assert steps["install-grcov"].env["GRCOV_VERSION"] == "v0.8.18"

    def test_load_workflow_job_by_name(self, burn_workflow_path):
        from cimatrix_common.io import safe_read_yaml

        document = load_workflow_job(safe_read_yaml(burn_workflow_path), "check-typos")

        assert document.resolve() == ()
        assert [s.id for s in document.steps][-1] == "run-spelling-checks-using-typos"
