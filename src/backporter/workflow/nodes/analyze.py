"""Analyze node - oracle assessment and the feasibility gate."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from backporter.core.log import logger
from backporter.workflow.reports import infeasible_error
from backporter.workflow.state import (
    BackportDeps,
    BackportResult,
    BackportState,
    Stage,
)

# A negative prediction above this confidence stops the run before any
# sandbox is provisioned. Anything less confident is attempted.
FEASIBILITY_REFUSAL_CONFIDENCE = 0.8


@dataclass
class Analyze(BaseNode[BackportState, BackportDeps, BackportResult]):
    """Classify the diff, then predict whether the backport can work."""

    async def run(
        self, ctx: GraphRunContext[BackportState, BackportDeps]
    ) -> Execute | Report:
        """
        Returns:
            Execute: Feasible, or not confidently infeasible
            Report: Refused by the oracle
        """
        state = ctx.state
        change_set = state.change_set
        oracle = ctx.deps.oracle

        state.log(ctx.deps, "Analyzing changes...")
        analysis = await oracle.analyze_diff(
            change_set.diff, change_set.title, change_set.body
        )
        state.analysis = analysis
        state.log(
            ctx.deps,
            f"Change is a {analysis.change_category} of "
            f"{analysis.complexity} complexity: {analysis.summary}",
        )

        feasibility = await oracle.analyze_feasibility(
            change_set.diff,
            analysis,
            change_set.base_branch,
            state.params.target_branch,
            state.branch_context.summary(),
        )
        state.feasibility = feasibility
        state.stage = Stage.ANALYZED
        state.log(
            ctx.deps,
            f"Feasibility: can_backport={feasibility.can_backport} "
            f"confidence={feasibility.confidence:.2f} "
            f"effort={feasibility.estimated_effort}",
        )

        if (
            not feasibility.can_backport
            and feasibility.confidence > FEASIBILITY_REFUSAL_CONFIDENCE
        ):
            state.error = infeasible_error(feasibility)
            logger.info(
                "Backport refused by feasibility analysis",
                job_id=state.params.job_id,
                confidence=feasibility.confidence,
            )
            from backporter.workflow.nodes.report import Report
            return Report()

        from backporter.workflow.nodes.execute import Execute
        return Execute()
