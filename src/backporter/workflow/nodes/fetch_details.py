"""FetchDetails node - read the source pull request."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from backporter.core.errors import ChangeSetNotFoundError
from backporter.workflow.state import (
    BackportDeps,
    BackportResult,
    BackportState,
    Stage,
)


@dataclass
class FetchDetails(BaseNode[BackportState, BackportDeps, BackportResult]):
    """Fetch title, description, branches, ordered commits and diff."""

    async def run(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> ValidateTargetBranch | Report:
        """
        Returns:
            ValidateTargetBranch: PR found
            Report: PR missing (fatal)
        """
        params = ctx.state.params
        ctx.state.log(ctx.deps, f"Fetching PR #{params.pr_number} details...")

        try:
            change_set = await asyncio.to_thread(
                ctx.deps.host.get_change_set, params.repository, params.pr_number
            )
        except ChangeSetNotFoundError as e:
            ctx.state.error = str(e)
            from backporter.workflow.nodes.report import Report
            return Report()

        ctx.state.change_set = change_set
        ctx.state.stage = Stage.DETAILS_FETCHED
        ctx.state.log(
            ctx.deps,
            f"PR #{change_set.number} '{change_set.title}' has "
            f"{len(change_set.commits)} commit(s)",
        )

        from backporter.workflow.nodes.validate_branch import ValidateTargetBranch
        return ValidateTargetBranch()
