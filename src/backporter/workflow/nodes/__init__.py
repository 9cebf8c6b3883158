"""Workflow nodes for the backport graph."""

from backporter.workflow.nodes.acknowledge import Acknowledge
from backporter.workflow.nodes.analyze import Analyze
from backporter.workflow.nodes.execute import Execute
from backporter.workflow.nodes.fetch_details import FetchDetails
from backporter.workflow.nodes.report import Report
from backporter.workflow.nodes.validate_branch import ValidateTargetBranch

__all__ = [
    "Acknowledge",
    "FetchDetails",
    "ValidateTargetBranch",
    "Analyze",
    "Execute",
    "Report",
]
