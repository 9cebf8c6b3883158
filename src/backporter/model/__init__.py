"""Reasoning oracle port and its structured outputs."""

from backporter.model.oracle import AgentOracle, Oracle
from backporter.model.types import (
    BackportFeasibility,
    ConflictResolution,
    DiffAnalysis,
    FileChange,
    PotentialConflict,
)

__all__ = [
    "AgentOracle",
    "BackportFeasibility",
    "ConflictResolution",
    "DiffAnalysis",
    "FileChange",
    "Oracle",
    "PotentialConflict",
]
