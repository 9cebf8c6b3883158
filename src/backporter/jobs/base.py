"""Abstract job store interface.

The orchestrator and the executor depend on JobStore, never on a
concrete backend. Consistency contract: a read that follows a write
from the same process observes that write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from backporter.core.errors import InvalidTransitionError
from backporter.core.log import logger
from backporter.jobs.models import (
    UPDATABLE_FIELDS,
    Job,
    JobParams,
    JobStatus,
    StepRecord,
    utcnow,
)


def check_transition(current: JobStatus, new: JobStatus) -> None:
    """Reject transitions out of a terminal state or backwards.

    Raises:
        InvalidTransitionError: For any non-monotonic change
    """
    if current == new and not current.terminal:
        return
    if current.terminal:
        raise InvalidTransitionError(
            f"Job is already {current.value}; cannot move to {new.value}"
        )
    if new.rank < current.rank:
        raise InvalidTransitionError(
            f"Cannot move job from {current.value} back to {new.value}"
        )


def format_log_entry(message: str) -> str:
    return f"[{utcnow().isoformat()}] {message}"


class JobStore(ABC):
    """Pluggable persistence for jobs and the step journal.

    Implementations must tolerate concurrent calls from several
    threads and several jobs at once.
    """

    @abstractmethod
    def create(self, params: JobParams) -> Job:
        """Persist a new pending job with an empty log."""

    @abstractmethod
    def get(self, job_id: str) -> Job | None:
        """Return a snapshot of the job, or None if unknown."""

    @abstractmethod
    def list_jobs(self, repository: str | None = None) -> list[Job]:
        """Return jobs ordered by creation time. Never raises for an
        empty store."""

    @abstractmethod
    def _apply_update(self, job_id: str, fields: dict[str, Any]) -> Job | None:
        """Atomically validate and write fields; return the new job."""

    @abstractmethod
    def _append(self, job_id: str, message: str) -> None:
        """Timestamp message with format_log_entry() and append it if
        the job exists. Stamping happens under the backend lock so log
        order matches timestamp order."""

    @abstractmethod
    def record_step(self, record: StepRecord) -> None:
        """Append to the step journal. A second record for the same
        (job_id, step_index) is ignored."""

    @abstractmethod
    def steps(self, job_id: str) -> list[StepRecord]:
        """Return journal records for a job ordered by step index."""

    def update(self, job_id: str, **fields: Any) -> Job | None:
        """Merge fields into the job and bump updated_at.

        Returns:
            The updated job, or None if the id is unknown

        Raises:
            ValueError: For fields that cannot be updated
            InvalidTransitionError: For a non-monotonic status change
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update job fields: {sorted(unknown)}")
        if "status" in fields:
            fields["status"] = JobStatus(fields["status"])
        return self._apply_update(job_id, fields)

    def append_log(self, job_id: str, message: str) -> None:
        """Append a timestamped line to the job log.

        Unknown ids are ignored. Failures are logged and swallowed so
        that audit logging never aborts a backport.
        """
        logger.info("[{job_id}] {message}", job_id=job_id, message=message)
        try:
            self._append(job_id, message)
        except Exception as e:
            logger.warn(
                "Failed to append job log",
                job_id=job_id,
                error=str(e),
            )

    def close(self) -> None:
        """Release resources. Default is a no-op."""
