"""Execute node - run the sandboxed cherry-pick."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from backporter.git.executor import BackportExecutor, BackportRequest
from backporter.workflow.state import (
    BackportDeps,
    BackportResult,
    BackportState,
    Stage,
)


@dataclass
class Execute(BaseNode[BackportState, BackportDeps, BackportResult]):
    async def run(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> Report:
        state = ctx.state
        deps = ctx.deps
        change_set = state.change_set
        state.stage = Stage.EXECUTING

        request = BackportRequest(
            repository=state.params.repository,
            pr_number=state.params.pr_number,
            target_branch=state.params.target_branch,
            commits=change_set.commits,
            analysis=state.analysis,
            credentials=deps.host.git_credentials(),
            head_branch=change_set.head_branch,
        )
        executor = BackportExecutor(deps.config, deps.sandbox_provider, deps.oracle)
        state.execution = await executor.execute(
            request, lambda message: state.log(deps, message)
        )

        from backporter.workflow.nodes.report import Report
        return Report()
