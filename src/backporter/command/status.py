"""Status command - show a stored job."""

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from backporter.core.log import logger


class StatusCommand(BaseModel):
    """Show a job's status, result and log trail.

    Only meaningful with a persistent store (config.store.backend: sqlite).
    """

    job_id: CliPositionalArg[str] = Field(description="Job id (bp_...)")
    steps: bool = Field(
        default=False, description="Also show the step journal"
    )

    async def run_workflow(self, state: "State") -> int:
        from backporter.jobs import create_store

        store = create_store(state.config.store)
        try:
            job = store.get(self.job_id)
            if job is None:
                logger.error("Unknown job {job_id}", job_id=self.job_id)
                return 1

            print(f"{job.id}  {job.status.value}")
            print(f"  {job.repository}#{job.source_pr} -> {job.target_branch}")
            print(f"  requested by {job.requested_by} at {job.created_at.isoformat()}")
            if job.result_pr is not None:
                print(f"  result PR: #{job.result_pr}")
            if job.error:
                print(f"  error: {job.error}")
            for entry in job.logs:
                print(f"  {entry}")

            if self.steps:
                for record in store.steps(job.id):
                    print(
                        f"  step {record.step_index}: {record.step_name} -> "
                        f"{record.next_step or 'end'}"
                    )
        finally:
            store.close()
        return 0
