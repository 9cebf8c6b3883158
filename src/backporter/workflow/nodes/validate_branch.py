"""ValidateTargetBranch node - confirm the target exists."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from backporter.core.errors import BranchNotFoundError
from backporter.workflow.state import (
    BackportDeps,
    BackportResult,
    BackportState,
    Stage,
)


@dataclass
class ValidateTargetBranch(BaseNode[BackportState, BackportDeps, BackportResult]):
    """Fetch the target branch's recent history, proving it exists."""

    async def run(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> Analyze | Report:
        params = ctx.state.params

        try:
            context = await asyncio.to_thread(
                ctx.deps.host.get_branch_context,
                params.repository,
                params.target_branch,
            )
        except BranchNotFoundError as e:
            ctx.state.error = str(e)
            ctx.state.log(ctx.deps, str(e))
            from backporter.workflow.nodes.report import Report
            return Report()

        ctx.state.branch_context = context
        ctx.state.stage = Stage.BRANCH_VALIDATED
        ctx.state.log(ctx.deps, f"Target branch {params.target_branch} exists")

        from backporter.workflow.nodes.analyze import Analyze
        return Analyze()
