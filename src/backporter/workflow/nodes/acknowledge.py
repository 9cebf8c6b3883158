"""Acknowledge node - react to the triggering comment."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from backporter.core.log import logger
from backporter.workflow.state import (
    BackportDeps,
    BackportResult,
    BackportState,
    Stage,
)


@dataclass
class Acknowledge(BaseNode[BackportState, BackportDeps, BackportResult]):
    """Tell the requester the backport has started. Never fatal."""

    async def run(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> FetchDetails:
        params = ctx.state.params

        if params.comment_id is not None:
            try:
                await asyncio.to_thread(
                    ctx.deps.host.react_to_comment,
                    params.repository, params.pr_number, params.comment_id, "eyes"
                )
            except Exception as e:
                logger.warn("Failed to acknowledge request", error=str(e))
                ctx.state.log(ctx.deps, f"Failed to acknowledge request: {e}")

        ctx.state.stage = Stage.ACKNOWLEDGED
        ctx.state.log(
            ctx.deps,
            f"Backport of #{params.pr_number} to {params.target_branch} started",
        )

        from backporter.workflow.nodes.fetch_details import FetchDetails
        return FetchDetails()
