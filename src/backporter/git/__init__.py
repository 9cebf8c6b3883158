"""Git operations for applying a backport."""

from backporter.git.executor import (
    RESOLUTION_ACCEPT_CONFIDENCE,
    BackportExecutor,
    BackportRequest,
    ExecutionResult,
)

__all__ = [
    "RESOLUTION_ACCEPT_CONFIDENCE",
    "BackportExecutor",
    "BackportRequest",
    "ExecutionResult",
]
