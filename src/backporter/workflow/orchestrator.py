"""Drive the backport graph one step at a time with a resume journal."""

from __future__ import annotations

from pydantic_graph import BaseNode, End

from backporter.core.errors import BackportError
from backporter.core.log import logger
from backporter.jobs.models import JobStatus, StepRecord
from backporter.workflow.graph import create_workflow
from backporter.workflow.state import (
    BackportDeps,
    BackportParams,
    BackportResult,
    BackportState,
)


def _start(params: BackportParams, deps: BackportDeps, graph):
    """Return (node, state, step_index) for a fresh or resumed run."""
    records = deps.store.steps(params.job_id)
    if not records:
        from backporter.workflow.nodes.acknowledge import Acknowledge
        return Acknowledge(), BackportState(params=params), 0

    last = records[-1]
    state = BackportState.model_validate(last.snapshot)
    next_step = last.next_step or "Report"
    node = graph.node_defs[next_step].node()
    deps.store.append_log(
        params.job_id,
        f"Resuming after step {last.step_name} at {next_step}",
    )
    return node, state, last.step_index + 1


def _error_text(error: Exception) -> str:
    if isinstance(error, BackportError):
        return str(error)
    return str(error) or type(error).__name__


async def run_backport(
    params: BackportParams, deps: BackportDeps
) -> BackportResult:
    """Run (or resume) the backport for an existing job.

    Whatever happens, the job is terminal when this returns.

    Raises:
        ValueError: If the job does not exist
    """
    store = deps.store
    job = store.get(params.job_id)
    if job is None:
        raise ValueError(f"Unknown job: {params.job_id}")

    if job.status.terminal:
        logger.info(
            "Job already finished, not re-running",
            job_id=job.id,
            status=job.status.value,
        )
        return BackportResult(
            success=job.status == JobStatus.COMPLETED,
            result_pr=job.result_pr,
            error=job.error,
        )

    state = None
    try:
        graph = create_workflow()
        node, state, step_index = _start(params, deps, graph)
        store.update(params.job_id, status=JobStatus.IN_PROGRESS)

        with logger.span(
            "backport {repository}#{pr_number} to {target_branch}",
            repository=params.repository,
            pr_number=params.pr_number,
            target_branch=params.target_branch,
            job_id=params.job_id,
        ):
            async with graph.iter(node, state=state, deps=deps) as run:
                while not isinstance(node, End):
                    next_node = await run.next(node)
                    store.record_step(StepRecord(
                        job_id=params.job_id,
                        step_index=step_index,
                        step_name=node.get_node_id(),
                        next_step=(
                            next_node.get_node_id()
                            if isinstance(next_node, BaseNode)
                            else None
                        ),
                        snapshot=state.model_dump(mode="json"),
                    ))
                    step_index += 1
                    node = next_node
        return node.data

    except Exception as e:
        error = _error_text(e)
        logger.exception("Backport workflow failed", job_id=params.job_id)
        store.append_log(params.job_id, f"Workflow failed: {error}")

        current = store.get(params.job_id)
        if current is not None and current.status.terminal:
            return BackportResult(
                success=current.status == JobStatus.COMPLETED,
                result_pr=current.result_pr,
                error=current.error,
            )

        from backporter.workflow.nodes.report import post_failure_comment
        commits = state.change_set.commits if state and state.change_set else []
        await post_failure_comment(deps, params, error, commits)
        store.update(params.job_id, status=JobStatus.FAILED, error=error)
        return BackportResult(success=False, error=error)
