"""Matrix commands: resolve, plan, validate and qualify."""

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from cimatrix import MatrixDocument, MatrixDocumentParser, load_workflow_job
from cimatrix.host import detect_host_facts, merge_facts
from cimatrix_cli.core.constants import ExitCode, Icons, OutputFormat
from cimatrix_cli.core.decorators import handle_exceptions
from cimatrix_cli.core.formatting import (
    github_matrix_output,
    plan_to_dict,
    render_jobs_table,
    render_plan_text,
    serialize,
)
from cimatrix_cli.core.param_types import HOST_FACT
from cimatrix_common.io import atomic_write, safe_read_yaml
from cimatrix_logging import get_cli_logger

if TYPE_CHECKING:
    from cimatrix_cli.cli import Context

logger = get_cli_logger(__name__)

FILE_ARGUMENT = click.argument(
    "file",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
WORKFLOW_JOB_OPTION = click.option(
    "--workflow-job",
    "-j",
    help="Workflow job to import (FILE is a GitHub Actions workflow)",
)


def _resolve_path(cli_ctx: "Context", file: Path | None) -> Path:
    if file is not None:
        return file
    configured = cli_ctx.config.get("matrix", {}).get("file")
    return cli_ctx.repo_root / configured if configured else Path("matrix.yaml")


def load_matrix_document(
    ctx: click.Context,
    file: Path | None,
    workflow_job: str | None,
) -> MatrixDocument:
    """Load FILE as a native matrix document or a workflow job.

    A file with a top-level ``jobs`` key, or any file when ``--workflow-job``
    is given, is treated as a GitHub Actions workflow.
    """
    cli_ctx: Context = ctx.obj
    path = _resolve_path(cli_ctx, file)
    if not path.exists():
        cli_ctx.output.error(f"Matrix file not found: {path}")
        ctx.exit(ExitCode.NOT_FOUND)

    data = safe_read_yaml(path)
    workflow_job = workflow_job or cli_ctx.config.get("matrix", {}).get("workflow_job")
    if workflow_job or "jobs" in data:
        logger.debug("Loading %s as a workflow (job=%s)", path, workflow_job)
        return load_workflow_job(data, workflow_job)

    logger.debug("Loading %s as a matrix document", path)
    return MatrixDocumentParser().parse_document(data)


def base_host_facts(cli_ctx: "Context", detect: bool) -> dict[str, Any]:
    """Detected facts overlaid with facts from configuration."""
    host_cfg = cli_ctx.config.get("host", {})
    detected = detect_host_facts() if detect and host_cfg.get("detect", True) else {}
    return dict(merge_facts(detected, host_cfg.get("facts") or {}))


def _emit(ctx: click.Context, text: str, output_file: Path | None) -> None:
    if output_file is not None:
        atomic_write(output_file, text + "\n")
        ctx.obj.output.info(f"Wrote {output_file}")
    else:
        ctx.obj.output.result(text)


def _default_format(cli_ctx: "Context", allowed: tuple[str, ...]) -> str:
    configured = cli_ctx.config.get("defaults", {}).get("format")
    return configured if configured in allowed else allowed[0]


@click.command(name="resolve")
@FILE_ARGUMENT
@WORKFLOW_JOB_OPTION
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OutputFormat.RESOLVE_FORMATS),
    help="Output format (default: table)",
)
@click.option(
    "--output-file",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the result to a file instead of stdout",
)
@click.pass_context
@handle_exceptions
def resolve(
    ctx: click.Context,
    file: Path | None,
    workflow_job: str | None,
    fmt: str | None,
    output_file: Path | None,
) -> None:
    """Expand the matrix in FILE into its ordered jobs.

    \b
    Examples:
      cimatrix resolve .github/matrix.yaml
      cimatrix resolve .github/workflows/test.yml --format github
    """  # noqa: W605
    cli_ctx: Context = ctx.obj
    document = load_matrix_document(ctx, file, workflow_job)
    jobs = document.resolve()
    fmt = fmt or _default_format(cli_ctx, OutputFormat.RESOLVE_FORMATS)

    cli_ctx.output.info(
        f"{document.axes.combination_count} base row(s), "
        f"{len(document.includes)} include, {len(document.excludes)} exclude "
        f"-> {len(jobs)} job(s)",
    )

    if fmt == OutputFormat.GITHUB:
        _emit(ctx, github_matrix_output(jobs), output_file)
    elif fmt in (OutputFormat.JSON, OutputFormat.YAML):
        _emit(ctx, serialize([job.to_dict() for job in jobs], fmt), output_file)
    else:
        if output_file is None:
            cli_ctx.output.section(f"Resolved {len(jobs)} job(s)", Icons.MATRIX)
        _emit(ctx, "\n".join(render_jobs_table(jobs)), output_file)


@click.command(name="plan")
@FILE_ARGUMENT
@WORKFLOW_JOB_OPTION
@click.option(
    "--job",
    "job_indexes",
    type=int,
    multiple=True,
    help="Job index from 'resolve' (repeatable; default: all jobs)",
)
@click.option(
    "--host",
    "host_facts",
    type=HOST_FACT,
    multiple=True,
    help="Host fact override, e.g. --host os=Linux (repeatable)",
)
@click.option(
    "--no-detect",
    is_flag=True,
    help="Do not detect facts about the current host",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OutputFormat.PLAN_FORMATS),
    default=OutputFormat.TEXT,
    show_default=True,
)
@click.pass_context
@handle_exceptions
def plan(
    ctx: click.Context,
    file: Path | None,
    workflow_job: str | None,
    job_indexes: tuple[int, ...],
    host_facts: tuple[tuple[str, str], ...],
    no_detect: bool,
    fmt: str,
) -> None:
    """Show the steps each job in FILE runs and their parameters.

    Host facts come from detection, configuration, the document's runner
    table and --host overrides, in increasing priority.
    """
    cli_ctx: Context = ctx.obj
    document = load_matrix_document(ctx, file, workflow_job)
    jobs = document.resolve()

    for index in job_indexes:
        if not 0 <= index < len(jobs):
            cli_ctx.output.error(
                f"Job index {index} out of range (matrix has {len(jobs)} jobs)",
            )
            ctx.exit(ExitCode.GENERAL_ERROR)
    selected = job_indexes or tuple(range(len(jobs)))

    base = base_host_facts(cli_ctx, detect=not no_detect)
    overrides = dict(host_facts)

    # Plan everything first so a configuration error produces no output
    plans = []
    for index in selected:
        job = jobs[index]
        facts = document.host_facts_for(job, base, overrides)
        cli_ctx.output.debug(f"job {index} host facts: {dict(facts)}")
        plans.append((index, job, document.plan(job, facts)))

    if fmt == OutputFormat.TEXT:
        cli_ctx.output.section(f"Step plan for {len(plans)} job(s)", Icons.PLAN)
        for index, job, steps in plans:
            for line in render_plan_text(index, job, steps):
                cli_ctx.output.result(line)
    else:
        data = [plan_to_dict(job, steps) for _, job, steps in plans]
        cli_ctx.output.result(serialize(data, fmt))


@click.command(name="validate")
@FILE_ARGUMENT
@WORKFLOW_JOB_OPTION
@click.option(
    "--host",
    "host_facts",
    type=HOST_FACT,
    multiple=True,
    help="Host fact used when planning every job (repeatable)",
)
@click.pass_context
@handle_exceptions
def validate(
    ctx: click.Context,
    file: Path | None,
    workflow_job: str | None,
    host_facts: tuple[tuple[str, str], ...],
) -> None:
    """Check FILE: resolve the matrix and plan every job.

    Include rules that name no axis are reported as warnings.
    """
    cli_ctx: Context = ctx.obj
    output = cli_ctx.output
    document = load_matrix_document(ctx, file, workflow_job)

    for rule in document.unreachable_includes():
        output.warning(
            f"{Icons.WARNING} include[{rule.index}] {rule.as_dict()} names no axis; "
            "it always adds a separate job",
        )

    planned = document.plan_all(
        base_host_facts(cli_ctx, detect=True),
        dict(host_facts),
    )
    step_runs = sum(len(steps) for _, steps in planned)

    output.success(
        f"{Icons.SUCCESS} Matrix is valid: {len(document.axes)} axes, "
        f"{len(planned)} job(s), {len(document.steps)} step(s), "
        f"{step_runs} planned step run(s)",
    )


@click.command(name="qualify")
@click.argument("step_id")
@FILE_ARGUMENT
@WORKFLOW_JOB_OPTION
@click.option(
    "--host",
    "host_facts",
    type=HOST_FACT,
    multiple=True,
    help="Host fact override (repeatable)",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OutputFormat.RESOLVE_FORMATS),
    help="Output format (default: table)",
)
@click.pass_context
@handle_exceptions
def qualify(
    ctx: click.Context,
    step_id: str,
    file: Path | None,
    workflow_job: str | None,
    host_facts: tuple[tuple[str, str], ...],
    fmt: str | None,
) -> None:
    """List the jobs whose plan runs STEP_ID (e.g. coverage upload)."""
    cli_ctx: Context = ctx.obj
    document = load_matrix_document(ctx, file, workflow_job)
    jobs = document.qualifying_jobs(
        step_id,
        base_host_facts(cli_ctx, detect=True),
        dict(host_facts),
    )
    fmt = fmt or _default_format(cli_ctx, OutputFormat.RESOLVE_FORMATS)

    if fmt == OutputFormat.GITHUB:
        cli_ctx.output.result(github_matrix_output(jobs))
    elif fmt in (OutputFormat.JSON, OutputFormat.YAML):
        cli_ctx.output.result(serialize([job.to_dict() for job in jobs], fmt))
    else:
        cli_ctx.output.section(f"{len(jobs)} job(s) run '{step_id}'", Icons.PLAN)
        for line in render_jobs_table(jobs):
            cli_ctx.output.result(line)
