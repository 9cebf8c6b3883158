"""Source-control host port."""

from backporter.host.base import (
    BranchContext,
    ChangeSet,
    Commit,
    GitCredentials,
    SourceHost,
)

__all__ = [
    "BranchContext",
    "ChangeSet",
    "Commit",
    "GitCredentials",
    "SourceHost",
]
