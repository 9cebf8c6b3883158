"""Workflow parameters, graph state, dependencies and result."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from backporter.core.config import Config
from backporter.git.executor import ExecutionResult
from backporter.host.base import BranchContext, ChangeSet, SourceHost
from backporter.jobs.base import JobStore
from backporter.model.oracle import Oracle
from backporter.model.types import BackportFeasibility, DiffAnalysis
from backporter.sandbox.base import SandboxProvider


class Stage(str, Enum):
    CREATED = "created"
    ACKNOWLEDGED = "acknowledged"
    DETAILS_FETCHED = "details_fetched"
    BRANCH_VALIDATED = "branch_validated"
    ANALYZED = "analyzed"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BackportParams(BaseModel):
    """What the orchestrator is asked to do."""

    job_id: str
    repository: str
    pr_number: int
    target_branch: str
    comment_id: int | None = None
    installation_id: int | None = None


class BackportState(BaseModel):
    """Everything a step produces. Snapshotted after every step so a
    run can resume without repeating completed ones."""

    params: BackportParams
    stage: Stage = Stage.CREATED
    change_set: ChangeSet | None = None
    branch_context: BranchContext | None = None
    analysis: DiffAnalysis | None = None
    feasibility: BackportFeasibility | None = None
    execution: ExecutionResult | None = None
    error: str | None = None

    def log(self, deps: BackportDeps, message: str) -> None:
        deps.store.append_log(self.params.job_id, message)


@dataclass
class BackportDeps:
    """Collaborators injected into every node."""

    config: Config
    store: JobStore
    host: SourceHost
    oracle: Oracle
    sandbox_provider: SandboxProvider


class BackportResult(BaseModel):
    success: bool
    result_pr: int | None = None
    error: str | None = None
