"""Job and step journal records."""

from __future__ import annotations

import secrets
import string
import time
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def rank(self) -> int:
        """Position along pending → in_progress → terminal."""
        return {
            JobStatus.PENDING: 0,
            JobStatus.IN_PROGRESS: 1,
            JobStatus.COMPLETED: 2,
            JobStatus.FAILED: 2,
        }[self]


_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_job_id() -> str:
    """Return an id like bp_1718000000000_k3j9x2a."""
    suffix = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"bp_{int(time.time() * 1000)}_{suffix}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class JobParams(BaseModel):
    """Fields supplied by the caller when a job is created."""

    repository: str
    source_pr: int
    target_branch: str
    requested_by: str
    comment_id: int | None = None
    installation_id: int | None = None


class Job(JobParams):
    """One backport request: identity, lifecycle and log trail."""

    id: str = Field(default_factory=generate_job_id)
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    result_pr: int | None = None
    error: str | None = None
    logs: list[str] = Field(default_factory=list)


# Fields update() may change
UPDATABLE_FIELDS = frozenset({"status", "result_pr", "error"})


class StepRecord(BaseModel):
    """Completion of one workflow step, keyed by (job_id, step_index)."""

    job_id: str
    step_index: int
    step_name: str
    next_step: str | None = Field(
        default=None, description="Step to resume at; None once finished"
    )
    snapshot: dict[str, Any] = Field(
        default_factory=dict, description="Workflow state after the step"
    )
    recorded_at: datetime = Field(default_factory=utcnow)
