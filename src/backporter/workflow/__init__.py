"""Backport workflow orchestration."""

from backporter.workflow.orchestrator import run_backport
from backporter.workflow.state import (
    BackportDeps,
    BackportParams,
    BackportResult,
    BackportState,
    Stage,
)

__all__ = [
    "BackportDeps",
    "BackportParams",
    "BackportResult",
    "BackportState",
    "Stage",
    "run_backport",
]
