"""Job store: durable record of backport requests and step journal."""

from backporter.core.config import StoreConfig
from backporter.jobs.base import JobStore
from backporter.jobs.memory import MemoryJobStore
from backporter.jobs.models import Job, JobParams, JobStatus, StepRecord
from backporter.jobs.sqlite import SQLiteJobStore


def create_store(config: StoreConfig) -> JobStore:
    """Build the store selected by config.backend.

    Raises:
        ValueError: For an unknown backend name
    """
    if config.backend == "memory":
        return MemoryJobStore()
    if config.backend == "sqlite":
        return SQLiteJobStore(config.path)
    raise ValueError(f"Unknown store backend: {config.backend}")


__all__ = [
    "Job",
    "JobParams",
    "JobStatus",
    "JobStore",
    "MemoryJobStore",
    "SQLiteJobStore",
    "StepRecord",
    "create_store",
]
