"""Report node - open the result PR or explain the failure."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from backporter.core.log import logger
from backporter.jobs.models import JobStatus
from backporter.workflow import reports
from backporter.workflow.state import (
    BackportDeps,
    BackportResult,
    BackportState,
    Stage,
)


@dataclass
class Report(BaseNode[BackportState, BackportDeps, BackportResult]):
    """Produce the single report for this run and finish the job."""

    async def run(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> End[BackportResult]:
        execution = ctx.state.execution
        if execution is not None and execution.success:
            return End(await self._succeed(ctx))
        return End(await self._fail(ctx))

    async def _succeed(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> BackportResult:
        state = ctx.state
        deps = ctx.deps
        params = state.params
        change_set = state.change_set
        execution = state.execution

        try:
            body = await deps.oracle.describe_backport(
                params.pr_number,
                change_set.title,
                params.target_branch,
                state.analysis,
                state.feasibility,
                execution.resolved_conflicts,
            )
        except Exception as e:
            logger.warn("Falling back to template PR body", error=str(e))
            body = reports.fallback_pr_body(
                params.pr_number,
                params.target_branch,
                state.analysis,
                execution.resolved_conflicts,
            )

        result_pr = await asyncio.to_thread(
            deps.host.create_pull_request,
            params.repository,
            reports.pr_title(params.target_branch, change_set.title),
            body,
            head=execution.branch,
            base=params.target_branch,
        )
        deps.store.update(params.job_id, result_pr=result_pr)
        state.log(deps, f"Created backport PR #{result_pr}")

        # The PR exists; a missing comment must not fail the job
        try:
            await asyncio.to_thread(
                deps.host.post_comment,
                params.repository,
                params.pr_number,
                reports.success_comment(
                    params.target_branch, result_pr, execution.resolved_conflicts
                ),
            )
        except Exception as e:
            logger.warn("Failed to post success comment", error=str(e))
            state.log(deps, f"Failed to post success comment: {e}")

        state.stage = Stage.SUCCEEDED
        deps.store.update(
            params.job_id, status=JobStatus.COMPLETED, result_pr=result_pr
        )
        return BackportResult(success=True, result_pr=result_pr)

    async def _fail(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> BackportResult:
        state = ctx.state
        deps = ctx.deps
        params = state.params
        error = state.error or (
            state.execution.error if state.execution else None
        ) or "Backport failed for an unknown reason"
        commits = state.change_set.commits if state.change_set else []

        await post_failure_comment(deps, params, error, commits)

        state.stage = Stage.FAILED
        state.error = error
        deps.store.update(params.job_id, status=JobStatus.FAILED, error=error)
        return BackportResult(success=False, error=error)


async def post_failure_comment(deps, params, error, commits) -> None:
    """Post the failure report. A host error is logged, not raised, so
    the job still reaches its failed state."""
    branch = deps.config.sandbox.branch_name(params.pr_number, params.target_branch)
    try:
        await asyncio.to_thread(
            deps.host.post_comment,
            params.repository,
            params.pr_number,
            reports.failure_comment(params.target_branch, branch, error, commits),
        )
    except Exception as e:
        logger.error("Failed to post failure comment", error=str(e))
        deps.store.append_log(params.job_id, f"Failed to post failure comment: {e}")
