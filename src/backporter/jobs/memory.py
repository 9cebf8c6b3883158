"""In-process job store."""

from __future__ import annotations

import threading
from typing import Any

from backporter.jobs.base import JobStore, check_transition, format_log_entry
from backporter.jobs.models import Job, JobParams, StepRecord, utcnow


class MemoryJobStore(JobStore):
    """Dict-backed store guarded by a lock.

    Reads return deep copies so callers never mutate stored state.
    Nothing survives the process.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: dict[str, Job] = {}
        self._steps: dict[str, dict[int, StepRecord]] = {}

    def create(self, params: JobParams) -> Job:
        job = Job(**params.model_dump())
        with self._lock:
            self._jobs[job.id] = job
            return job.model_copy(deep=True)

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def list_jobs(self, repository: str | None = None) -> list[Job]:
        with self._lock:
            jobs = [
                job.model_copy(deep=True) for job in self._jobs.values()
                if repository is None or job.repository == repository
            ]
        return sorted(jobs, key=lambda j: j.created_at)

    def _apply_update(self, job_id: str, fields: dict[str, Any]) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if "status" in fields:
                check_transition(job.status, fields["status"])
            updated = job.model_copy(
                update={**fields, "updated_at": utcnow()}
            )
            self._jobs[job_id] = updated
            return updated.model_copy(deep=True)

    def _append(self, job_id: str, message: str) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return
            job.logs.append(format_log_entry(message))
            job.updated_at = utcnow()

    def record_step(self, record: StepRecord) -> None:
        with self._lock:
            journal = self._steps.setdefault(record.job_id, {})
            journal.setdefault(record.step_index, record.model_copy(deep=True))

    def steps(self, job_id: str) -> list[StepRecord]:
        with self._lock:
            journal = self._steps.get(job_id, {})
            return [
                journal[i].model_copy(deep=True) for i in sorted(journal)
            ]
