"""Backport command - runs one backport from the command line."""

import getpass

from pydantic import BaseModel, Field

from backporter.core.log import logger


class BackportCommand(BaseModel):
    """Backport a pull request onto another branch.

    Creates a job (or resumes one with --resume), then runs the full
    workflow: acknowledge, fetch, validate, analyze, execute, report.
    The requester is trusted; no permission check is made.
    """

    repository: str | None = Field(
        default=None, description="Repository as owner/name"
    )
    pr: int | None = Field(default=None, description="Source pull request number")
    target_branch: str | None = Field(
        default=None,
        alias="target-branch",
        description="Branch to backport onto",
    )
    requested_by: str = Field(
        default_factory=getpass.getuser,
        alias="requested-by",
        description="Requester recorded on the job",
    )
    installation_id: int | None = Field(
        default=None,
        alias="installation-id",
        description="GitHub App installation to authenticate as",
    )
    resume: str | None = Field(
        default=None,
        description="Resume an existing job id instead of creating one",
    )

    model_config = {"populate_by_name": True}

    async def run_workflow(self, state: "State") -> int:
        """Run the backport workflow.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=success, 1=failure)
        """
        from backporter.host.github import GitHubHost
        from backporter.intake import params_for
        from backporter.jobs import JobParams, create_store
        from backporter.model.oracle import AgentOracle
        from backporter.sandbox.local import LocalSandboxProvider
        from backporter.workflow import BackportDeps, run_backport

        config = state.config
        runtime = state.runtime.backport
        store = create_store(config.store)

        try:
            if self.resume:
                job = store.get(self.resume)
                if job is None:
                    logger.error("Unknown job {job_id}", job_id=self.resume)
                    return 1
            else:
                if not (self.repository and self.pr and self.target_branch):
                    logger.error(
                        "--repository, --pr and --target-branch are required"
                    )
                    return 1
                job = store.create(JobParams(
                    repository=self.repository,
                    source_pr=self.pr,
                    target_branch=self.target_branch,
                    requested_by=self.requested_by,
                    installation_id=self.installation_id,
                ))
                store.append_log(
                    job.id, f"Backport requested by {self.requested_by} from CLI"
                )

            runtime.job_id = job.id
            runtime.status = "running"
            logger.info(
                "Backporting {repository}#{pr} to {target_branch} as {job_id}",
                repository=job.repository,
                pr=job.source_pr,
                target_branch=job.target_branch,
                job_id=job.id,
            )

            deps = BackportDeps(
                config=config,
                store=store,
                host=GitHubHost.from_config(config.github, job.installation_id),
                oracle=AgentOracle(config.llm, config.prompts.get("oracle", {})),
                sandbox_provider=LocalSandboxProvider(config.sandbox.root_dir),
            )
            result = await run_backport(params_for(job), deps)
        finally:
            store.close()

        if result.success:
            runtime.status = "complete"
            logger.info("Backport complete: PR #{pr}", pr=result.result_pr)
            return 0

        runtime.status = "failed"
        logger.error("Backport failed: {error}", error=result.error)
        return 1
