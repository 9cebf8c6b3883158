"""SQLiteJobStore: jobs and step journal in a local database file.

Lets a restarted process find the jobs it was running and resume them
from the step journal.

Schema:
  jobs      one row per backport request
  job_logs  append-only log lines, ordered by rowid
  steps     step journal, primary key (job_id, step_index)
"""

from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from backporter.jobs.base import JobStore, check_transition, format_log_entry
from backporter.jobs.models import Job, JobParams, JobStatus, StepRecord, utcnow

_SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id               TEXT PRIMARY KEY,
    repository       TEXT NOT NULL,
    source_pr        INTEGER NOT NULL,
    target_branch    TEXT NOT NULL,
    requested_by     TEXT NOT NULL,
    comment_id       INTEGER,
    installation_id  INTEGER,
    status           TEXT NOT NULL,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL,
    result_pr        INTEGER,
    error            TEXT
);
CREATE INDEX IF NOT EXISTS idx_jobs_repository ON jobs (repository);
CREATE TABLE IF NOT EXISTS job_logs (
    id      INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id  TEXT NOT NULL REFERENCES jobs (id),
    entry   TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_job_logs_job ON job_logs (job_id);
CREATE TABLE IF NOT EXISTS steps (
    job_id       TEXT NOT NULL,
    step_index   INTEGER NOT NULL,
    step_name    TEXT NOT NULL,
    next_step    TEXT,
    snapshot     TEXT NOT NULL,
    recorded_at  TEXT NOT NULL,
    PRIMARY KEY (job_id, step_index)
);
"""


class SQLiteJobStore(JobStore):
    """Stores jobs in a SQLite database file.

    One connection shared across threads, serialized by a lock.
    """

    def __init__(self, db_path: str | Path):
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def create(self, params: JobParams) -> Job:
        job = Job(**params.model_dump())
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO jobs
                  (id, repository, source_pr, target_branch, requested_by,
                   comment_id, installation_id, status, created_at,
                   updated_at, result_pr, error)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.id,
                    job.repository,
                    job.source_pr,
                    job.target_branch,
                    job.requested_by,
                    job.comment_id,
                    job.installation_id,
                    job.status.value,
                    job.created_at.isoformat(),
                    job.updated_at.isoformat(),
                    job.result_pr,
                    job.error,
                ),
            )
            self._conn.commit()
        return job

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            return self._load(job_id)

    def list_jobs(self, repository: str | None = None) -> list[Job]:
        with self._lock:
            if repository is not None:
                rows = self._conn.execute(
                    "SELECT id FROM jobs WHERE repository=? ORDER BY created_at",
                    (repository,),
                ).fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT id FROM jobs ORDER BY created_at"
                ).fetchall()
            return [self._load(row["id"]) for row in rows]

    def _apply_update(self, job_id: str, fields: dict[str, Any]) -> Job | None:
        with self._lock:
            job = self._load(job_id)
            if job is None:
                return None
            if "status" in fields:
                check_transition(job.status, fields["status"])

            columns = {
                key: (value.value if isinstance(value, JobStatus) else value)
                for key, value in fields.items()
            }
            columns["updated_at"] = utcnow().isoformat()
            assignments = ", ".join(f"{key}=?" for key in columns)
            self._conn.execute(
                f"UPDATE jobs SET {assignments} WHERE id=?",
                (*columns.values(), job_id),
            )
            self._conn.commit()
            return self._load(job_id)

    def _append(self, job_id: str, message: str) -> None:
        with self._lock:
            entry = format_log_entry(message)
            cursor = self._conn.execute(
                "UPDATE jobs SET updated_at=? WHERE id=?",
                (utcnow().isoformat(), job_id),
            )
            if cursor.rowcount == 0:
                return
            self._conn.execute(
                "INSERT INTO job_logs (job_id, entry) VALUES (?, ?)",
                (job_id, entry),
            )
            self._conn.commit()

    def record_step(self, record: StepRecord) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT OR IGNORE INTO steps
                  (job_id, step_index, step_name, next_step, snapshot,
                   recorded_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.job_id,
                    record.step_index,
                    record.step_name,
                    record.next_step,
                    json.dumps(record.snapshot),
                    record.recorded_at.isoformat(),
                ),
            )
            self._conn.commit()

    def steps(self, job_id: str) -> list[StepRecord]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM steps WHERE job_id=? ORDER BY step_index",
                (job_id,),
            ).fetchall()
        return [
            StepRecord(
                job_id=row["job_id"],
                step_index=row["step_index"],
                step_name=row["step_name"],
                next_step=row["next_step"],
                snapshot=json.loads(row["snapshot"]),
                recorded_at=datetime.fromisoformat(row["recorded_at"]),
            )
            for row in rows
        ]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _load(self, job_id: str) -> Job | None:
        row = self._conn.execute(
            "SELECT * FROM jobs WHERE id=?", (job_id,)
        ).fetchone()
        if row is None:
            return None
        logs = [
            r["entry"] for r in self._conn.execute(
                "SELECT entry FROM job_logs WHERE job_id=? ORDER BY id",
                (job_id,),
            ).fetchall()
        ]
        return Job(
            id=row["id"],
            repository=row["repository"],
            source_pr=row["source_pr"],
            target_branch=row["target_branch"],
            requested_by=row["requested_by"],
            comment_id=row["comment_id"],
            installation_id=row["installation_id"],
            status=JobStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            result_pr=row["result_pr"],
            error=row["error"],
            logs=logs,
        )
