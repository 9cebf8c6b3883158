"""Graph workflow definition."""

from pydantic_graph import Graph

from backporter.core.log import logger
from backporter.workflow.state import BackportDeps, BackportResult, BackportState


def create_workflow() -> Graph[BackportState, BackportDeps, BackportResult]:
    """Create the backport workflow graph.

    Acknowledge → FetchDetails → ValidateTargetBranch → Analyze →
        Execute → Report
    with FetchDetails, ValidateTargetBranch and Analyze able to jump
    straight to Report on a fatal outcome.
    """
    logger.debug("Building workflow graph")

    # Imported here so return annotations resolve against this scope
    from backporter.workflow.nodes.acknowledge import Acknowledge
    from backporter.workflow.nodes.analyze import Analyze
    from backporter.workflow.nodes.execute import Execute
    from backporter.workflow.nodes.fetch_details import FetchDetails
    from backporter.workflow.nodes.report import Report
    from backporter.workflow.nodes.validate_branch import ValidateTargetBranch

    return Graph(
        nodes=(
            Acknowledge,
            FetchDetails,
            ValidateTargetBranch,
            Analyze,
            Execute,
            Report,
        ),
        state_type=BackportState,
        run_end_type=BackportResult,
        name="backport",
    )
