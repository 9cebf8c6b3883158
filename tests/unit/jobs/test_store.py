"""Tests for the job stores, run against every backend."""

import re
import threading
from datetime import datetime

import pytest

from backporter.core.config import StoreConfig
from backporter.core.errors import InvalidTransitionError
from backporter.jobs import (
    JobParams,
    JobStatus,
    MemoryJobStore,
    SQLiteJobStore,
    StepRecord,
    create_store,
)

PARAMS = JobParams(
    repository="acme/widget",
    source_pr=7,
    target_branch="release",
    requested_by="octocat",
    comment_id=99,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        store = MemoryJobStore()
    else:
        store = SQLiteJobStore(tmp_path / "jobs.db")
    yield store
    store.close()


def test_create_starts_pending(store):
    job = store.create(PARAMS)

    assert re.fullmatch(r"bp_\d+_[a-z0-9]{7}", job.id)
    assert job.status == JobStatus.PENDING
    assert job.logs == []
    assert store.get(job.id) == job


def test_get_unknown_returns_none(store):
    assert store.get("bp_0_missing") is None


def test_update_merges_fields_and_bumps_timestamp(store):
    job = store.create(PARAMS)

    store.update(job.id, status=JobStatus.IN_PROGRESS)
    updated = store.update(job.id, status="completed", result_pr=12)

    assert updated.status == JobStatus.COMPLETED
    assert updated.result_pr == 12
    assert updated.updated_at >= job.updated_at
    assert store.get(job.id).result_pr == 12


def test_update_unknown_returns_none(store):
    assert store.update("bp_0_missing", status=JobStatus.FAILED) is None


def test_terminal_state_is_final(store):
    job = store.create(PARAMS)
    store.update(job.id, status=JobStatus.FAILED, error="boom")

    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status=JobStatus.IN_PROGRESS)
    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status=JobStatus.COMPLETED)
    assert store.get(job.id).status == JobStatus.FAILED


def test_backwards_transition_rejected(store):
    job = store.create(PARAMS)
    store.update(job.id, status=JobStatus.IN_PROGRESS)

    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status=JobStatus.PENDING)


def test_update_rejects_unknown_fields(store):
    job = store.create(PARAMS)

    with pytest.raises(ValueError):
        store.update(job.id, repository="evil/repo")


def test_append_log_timestamps_entries_in_order(store):
    job = store.create(PARAMS)

    store.append_log(job.id, "first")
    store.append_log(job.id, "second")

    logs = store.get(job.id).logs
    assert [entry.split("] ", 1)[1] for entry in logs] == ["first", "second"]
    assert all(re.match(r"\[\d{4}-\d{2}-\d{2}T", entry) for entry in logs)


def test_append_log_unknown_id_is_harmless(store):
    store.append_log("bp_0_missing", "nobody home")

    assert store.get("bp_0_missing") is None


def test_append_log_swallows_backend_errors(store, monkeypatch):
    job = store.create(PARAMS)

    def broken(job_id, message):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "_append", broken)
    store.append_log(job.id, "lost")


def test_concurrent_appends_all_recorded(store):
    jobs = [store.create(PARAMS) for _ in range(3)]

    def worker(job_id, n):
        for i in range(20):
            store.append_log(job_id, f"{n}-{i}")

    threads = [
        threading.Thread(target=worker, args=(job.id, n))
        for n, job in enumerate(jobs)
        for _ in range(2)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for job in jobs:
        assert len(store.get(job.id).logs) == 40


def test_list_jobs_filters_by_repository(store):
    store.create(PARAMS)
    store.create(PARAMS.model_copy(update={"repository": "acme/other"}))

    assert len(store.list_jobs()) == 2
    assert [j.repository for j in store.list_jobs("acme/other")] == ["acme/other"]


def test_step_journal_keeps_first_record(store):
    job = store.create(PARAMS)
    store.record_step(StepRecord(
        job_id=job.id, step_index=1, step_name="FetchDetails",
        next_step="ValidateTargetBranch", snapshot={"n": 1},
    ))
    store.record_step(StepRecord(
        job_id=job.id, step_index=0, step_name="Acknowledge",
        next_step="FetchDetails", snapshot={"n": 0},
    ))
    store.record_step(StepRecord(
        job_id=job.id, step_index=1, step_name="Duplicate",
        next_step=None, snapshot={"n": 2},
    ))

    steps = store.steps(job.id)

    assert [s.step_index for s in steps] == [0, 1]
    assert steps[1].step_name == "FetchDetails"
    assert steps[1].snapshot == {"n": 1}


def test_sqlite_survives_reopen(tmp_path):
    path = tmp_path / "jobs.db"
    store = SQLiteJobStore(path)
    job = store.create(PARAMS)
    store.append_log(job.id, "hello")
    store.record_step(StepRecord(
        job_id=job.id, step_index=0, step_name="Acknowledge",
        next_step="FetchDetails",
    ))
    store.close()

    reopened = SQLiteJobStore(path)
    try:
        restored = reopened.get(job.id)
        assert restored.comment_id == 99
        assert restored.logs[0].endswith("hello")
        assert reopened.steps(job.id)[0].next_step == "FetchDetails"
    finally:
        reopened.close()


def test_create_store_selects_backend(tmp_path):
    assert isinstance(create_store(StoreConfig()), MemoryJobStore)
    sqlite = create_store(StoreConfig(backend="sqlite", path=tmp_path / "j.db"))
    assert isinstance(sqlite, SQLiteJobStore)
    sqlite.close()
    with pytest.raises(ValueError):
        create_store(StoreConfig(backend="redis"))


def test_log_order_matches_timestamps_under_contention(store):
    job = store.create(PARAMS)

    def worker(n):
        for i in range(50):
            store.append_log(job.id, f"{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stamps = [
        datetime.fromisoformat(entry[1:entry.index("]")])
        for entry in store.get(job.id).logs
    ]
    assert len(stamps) == 400
    assert stamps == sorted(stamps)
