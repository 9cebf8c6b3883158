"""Error taxonomy for backport runs.

Every error that can end a backport derives from BackportError, so the
workflow boundary can tell expected failures (reported as-is) from
programming errors (reported with their type).
"""

from __future__ import annotations


class BackportError(Exception):
    """Base class for expected backport failures."""


class InputError(BackportError):
    """Invalid user input. Never retried."""


class BranchNotFoundError(InputError):
    """Target branch does not exist on the host."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Target branch '{branch}' does not exist")


class TriggerValidationError(InputError):
    """Inbound trigger is missing required fields."""


class ChangeSetNotFoundError(BackportError):
    """Source pull request cannot be found."""

    def __init__(self, repository: str, number: int):
        self.repository = repository
        self.number = number
        super().__init__(
            f"Pull request #{number} not found in {repository}"
        )


class InvalidTransitionError(BackportError):
    """Job status change that would leave a terminal state or go back."""


class SandboxError(BackportError):
    """Sandbox could not be provisioned or used."""


class SandboxTimeoutError(SandboxError):
    """Sandbox exhausted its wall-clock budget."""


class GitCommandError(BackportError):
    """A git command failed for reasons other than content conflicts."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        stderr: str = "",
        branch: str | None = None,
    ):
        self.command = command
        self.stderr = stderr
        self.branch = branch
        detail = stderr.strip()
        super().__init__(f"{message}: {detail}" if detail else message)


class UnresolvedConflictError(BackportError):
    """A conflicted file could not be resolved automatically."""

    def __init__(self, file: str, commit: str, conflict_files: list[str]):
        self.file = file
        self.commit = commit
        self.conflict_files = conflict_files
        super().__init__(
            f"Could not resolve merge conflict in {file} while "
            f"applying commit {commit[:7]}. Manual intervention required."
        )
