"""Tests for the status subcommand."""

import asyncio
from types import SimpleNamespace

from backporter.command.status import StatusCommand
from backporter.core.config import StoreConfig
from backporter.jobs import JobParams, JobStatus, SQLiteJobStore, StepRecord


def make_state(db_path):
    store = StoreConfig(backend="sqlite", path=db_path)
    return SimpleNamespace(config=SimpleNamespace(store=store))


def test_prints_job(tmp_path, capsys):
    db_path = tmp_path / "jobs.db"
    store = SQLiteJobStore(db_path)
    job = store.create(JobParams(
        repository="acme/widget", source_pr=7,
        target_branch="release", requested_by="octocat",
    ))
    store.append_log(job.id, "Fetching PR #7 details...")
    store.record_step(StepRecord(
        job_id=job.id, step_index=0, step_name="Acknowledge",
        next_step="FetchDetails",
    ))
    store.update(job.id, status=JobStatus.FAILED, error="Target branch 'release' does not exist")
    store.close()

    command = StatusCommand(job_id=job.id, steps=True)
    code = asyncio.run(command.run_workflow(make_state(db_path)))

    out = capsys.readouterr().out
    assert code == 0
    assert f"{job.id}  failed" in out
    assert "acme/widget#7 -> release" in out
    assert "does not exist" in out
    assert "Fetching PR #7 details..." in out
    assert "step 0: Acknowledge -> FetchDetails" in out


def test_unknown_job(tmp_path):
    command = StatusCommand(job_id="bp_0_nothing")

    code = asyncio.run(command.run_workflow(make_state(tmp_path / "jobs.db")))

    assert code == 1
