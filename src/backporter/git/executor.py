"""Apply a change-set's commits onto a target branch inside a sandbox."""

from __future__ import annotations

import asyncio
import shlex
from collections.abc import Callable

from pydantic import BaseModel, Field

from backporter.core.config import Config
from backporter.core.errors import (
    BackportError,
    GitCommandError,
    SandboxError,
    UnresolvedConflictError,
)
from backporter.core.log import logger
from backporter.git.conflicts import (
    conflicted_files,
    has_conflict_markers,
    join_sides,
    parse,
    unmerged_paths,
)
from backporter.host.base import Commit, GitCredentials
from backporter.model.oracle import Oracle
from backporter.model.types import DiffAnalysis
from backporter.sandbox.base import CommandResult, Sandbox, SandboxProvider

# Oracle resolutions below this confidence are rejected
RESOLUTION_ACCEPT_CONFIDENCE = 0.7

LogFn = Callable[[str], None]


class BackportRequest(BaseModel):
    repository: str
    pr_number: int
    target_branch: str
    commits: list[Commit]
    analysis: DiffAnalysis
    credentials: GitCredentials
    head_branch: str | None = None


class ExecutionResult(BaseModel):
    success: bool
    branch: str | None = None
    resolved_conflicts: int = 0
    error: str | None = None
    conflict_files: list[str] = Field(default_factory=list)


class BackportExecutor:
    """Cherry-picks commits in order and pushes the backport branch.

    Conflicted files are handed to the oracle one at a time. The first
    file it cannot resolve confidently abandons the whole attempt: no
    further commits are applied and nothing is pushed.
    """

    def __init__(self, config: Config, provider: SandboxProvider, oracle: Oracle):
        self.config = config
        self.provider = provider
        self.oracle = oracle
        self._secret = ""

    async def execute(
        self, request: BackportRequest, on_log: LogFn
    ) -> ExecutionResult:
        """Run the whole apply-and-push sequence.

        Sandbox commands run in worker threads so other jobs on the
        same event loop keep running; commands of one job stay
        strictly sequential.

        Returns:
            ExecutionResult; every BackportError becomes success=False
        """
        sandbox = None
        resolved = 0
        self._secret = request.credentials.token

        try:
            on_log("Creating sandbox environment...")
            sandbox = await asyncio.to_thread(
                self.provider.create, self.config.sandbox.timeout
            )
            on_log(f"Sandbox created: {sandbox.sandbox_id}")

            await self._prepare(sandbox, request, on_log)

            on_log(f"Cherry-picking {len(request.commits)} commit(s)...")
            for commit in request.commits:
                resolved += await self._apply(sandbox, commit, request, on_log)

            branch = await self._push(sandbox, request, on_log)
            on_log(f"Backport branch {branch} pushed")
            return ExecutionResult(
                success=True, branch=branch, resolved_conflicts=resolved
            )

        except UnresolvedConflictError as e:
            on_log(str(e))
            return ExecutionResult(
                success=False,
                error=str(e),
                conflict_files=e.conflict_files,
                resolved_conflicts=resolved,
            )
        except BackportError as e:
            logger.warn("Backport execution failed", error=str(e))
            on_log(f"Backport failed: {e}")
            return ExecutionResult(
                success=False, error=str(e), resolved_conflicts=resolved
            )
        finally:
            if sandbox is not None:
                try:
                    await asyncio.to_thread(sandbox.stop)
                except Exception as e:
                    logger.warn(
                        "Failed to stop sandbox",
                        sandbox_id=sandbox.sandbox_id,
                        error=str(e),
                    )

    # Git plumbing

    async def _git(
        self,
        sandbox: Sandbox,
        name: str,
        *,
        check: bool = True,
        error: str | None = None,
        **values,
    ) -> CommandResult:
        template = self.config.git_command(name)
        command = template.format(
            **{k: shlex.quote(str(v)) for k, v in values.items()}
        )
        try:
            result = await asyncio.to_thread(sandbox.run, command)
        except SandboxError as e:
            raise type(e)(self._scrub(str(e))) from None
        if check and not result.ok:
            raise GitCommandError(
                error or f"git {name} failed",
                command=name,
                stderr=self._scrub(result.stderr),
                branch=values.get("branch"),
            )
        return result

    def _scrub(self, text: str) -> str:
        """Mask the access token, which can appear in remote URLs."""
        return text.replace(self._secret, "***") if self._secret else text

    async def _prepare(
        self, sandbox: Sandbox, request: BackportRequest, on_log: LogFn
    ) -> None:
        sandbox_config = self.config.sandbox
        target = request.target_branch

        on_log("Configuring git...")
        await self._git(sandbox, "init", error="Failed to initialize repository")
        await self._git(
            sandbox, "set_config",
            key="user.name", value=sandbox_config.committer_name,
        )
        await self._git(
            sandbox, "set_config",
            key="user.email", value=sandbox_config.committer_email,
        )
        url = self.config.github.clone_url.format(
            username=request.credentials.username,
            token=request.credentials.token,
            repository=request.repository,
        )
        await self._git(sandbox, "add_remote", url=url, error="Failed to add remote")

        on_log(f"Fetching target branch {target}...")
        await self._git(
            sandbox, "fetch_branch",
            depth=sandbox_config.fetch_depth,
            branch=target,
            error=f"Failed to clone repository at branch {target}",
        )

        work_branch = sandbox_config.work_branch.format(
            pr_number=request.pr_number, target_branch=target
        )
        on_log(f"Checking out target branch: {target}...")
        await self._git(
            sandbox, "checkout_new",
            branch=work_branch,
            base=target,
            error="Failed to checkout target branch",
        )

        # The source branch may already be deleted; commits are usually
        # still reachable by sha.
        for commit in request.commits:
            await self._git(sandbox, "fetch_commit", check=False, sha=commit.sha)
        if request.head_branch:
            fetched = await self._git(
                sandbox, "fetch_ref", check=False, branch=request.head_branch
            )
            if not fetched.ok:
                logger.debug(
                    "Source branch not fetched",
                    branch=request.head_branch,
                    stderr=fetched.stderr,
                )

    async def _apply(
        self,
        sandbox: Sandbox,
        commit: Commit,
        request: BackportRequest,
        on_log: LogFn,
    ) -> int:
        """Apply one commit. Returns the number of files resolved."""
        on_log(f"Cherry-picking commit {commit.short_sha}: {commit.subject}")
        resolved = 0

        picked = await self._git(sandbox, "cherry_pick", check=False, sha=commit.sha)
        if not picked.ok:
            status = await self._git(sandbox, "status", error="Failed to read status")
            files = conflicted_files(status.stdout)
            if not files:
                raise GitCommandError(
                    f"Failed to cherry-pick commit {commit.short_sha}",
                    command="cherry_pick",
                    stderr=self._scrub(picked.stderr),
                )

            on_log(f"Conflicts detected in {len(files)} file(s): {', '.join(files)}")
            for index, path in enumerate(files):
                if not await self._resolve_file(sandbox, path, request, on_log):
                    await self._abort(sandbox)
                    raise UnresolvedConflictError(
                        path, commit.sha, files[index:]
                    )
                resolved += 1

            # add -A would stage any conflict left behind as if resolved
            unmerged = await self._git(
                sandbox, "unmerged", error="Failed to list unmerged paths"
            )
            remaining = unmerged_paths(unmerged.stdout)
            if remaining:
                await self._abort(sandbox)
                raise UnresolvedConflictError(remaining[0], commit.sha, remaining)

        await self._git(sandbox, "add_all", error="Failed to stage changes")

        # diff --cached --quiet exits 0 when nothing is staged
        if (await self._git(sandbox, "staged_changes", check=False)).ok:
            on_log(f"Commit {commit.short_sha} already applied, skipping")
            return resolved

        message = f"{commit.message}\n\n(cherry picked from commit {commit.sha})"
        await self._git(
            sandbox, "commit",
            message=message,
            error="Failed to commit cherry-picked changes",
        )
        return resolved

    async def _resolve_file(
        self,
        sandbox: Sandbox,
        path: str,
        request: BackportRequest,
        on_log: LogFn,
    ) -> bool:
        """Ask the oracle for one file. True when the file is resolved
        and staged."""
        try:
            content = await asyncio.to_thread(sandbox.read_file, path)
        except SandboxError as e:
            on_log(f"Could not read conflicted file {path}: {e}")
            return False

        if not has_conflict_markers(content):
            on_log(f"No conflict markers found in {path}")
            return False

        try:
            regions = parse(content)
        except ValueError as e:
            on_log(f"Malformed conflict markers in {path}: {e}")
            return False

        theirs, ours = join_sides(regions)
        on_log(f"Resolving {len(regions)} conflict region(s) in {path}...")
        try:
            resolution = await self.oracle.resolve_conflict(
                content, theirs, ours, request.analysis.intent
            )
        except Exception as e:
            logger.warn("Oracle failed to resolve conflict", path=path, error=str(e))
            on_log(f"Conflict resolution failed for {path}: {e}")
            return False

        if resolution.confidence < RESOLUTION_ACCEPT_CONFIDENCE:
            on_log(
                f"Low confidence resolution for {path} "
                f"({resolution.confidence:.2f}), not applying"
            )
            return False

        if has_conflict_markers(resolution.resolved_content):
            logger.warn(
                "Accepted resolution still contains conflict markers",
                path=path,
                confidence=resolution.confidence,
            )

        await asyncio.to_thread(
            sandbox.write_file, path, resolution.resolved_content
        )
        await self._git(
            sandbox, "add_file",
            path=path,
            error=f"Failed to stage resolved file {path}",
        )
        on_log(
            f"Resolved conflict in {path} "
            f"(confidence {resolution.confidence:.2f}): {resolution.explanation}"
        )
        return True

    async def _abort(self, sandbox: Sandbox) -> None:
        # --abort can fail after --no-commit; reset covers that case
        await self._git(sandbox, "cherry_pick_abort", check=False)
        await self._git(sandbox, "reset_hard", check=False)

    async def _push(
        self, sandbox: Sandbox, request: BackportRequest, on_log: LogFn
    ) -> str:
        branch = self.config.sandbox.branch_name(
            request.pr_number, request.target_branch
        )
        await self._git(
            sandbox, "rename_branch",
            branch=branch,
            error=f"Failed to rename working branch to {branch}",
        )

        deleted = await self._git(
            sandbox, "delete_remote_branch", check=False, branch=branch
        )
        if deleted.ok:
            on_log(f"Deleted stale remote branch {branch}")

        on_log(f"Pushing branch {branch}...")
        await self._git(
            sandbox, "push", branch=branch, error=f"Failed to push branch {branch}"
        )
        return branch
