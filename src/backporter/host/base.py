"""Source-control host port and the records it returns."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, Field


class Commit(BaseModel):
    """One commit to re-apply. Order within a change-set matters."""

    sha: str
    message: str

    model_config = {"frozen": True}

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0]


class ChangeSet(BaseModel):
    """Pull request metadata, commits and diff."""

    number: int
    title: str
    body: str = ""
    base_branch: str
    head_branch: str
    commits: list[Commit] = Field(default_factory=list)
    diff: str = ""
    merged: bool = False
    merge_commit_sha: str | None = None


class BranchContext(BaseModel):
    """Existence proof and recent history of the target branch."""

    name: str
    recent_commits: list[str] = Field(default_factory=list)

    def summary(self) -> str:
        if not self.recent_commits:
            return "(no recent commits)"
        return "\n".join(f"- {line}" for line in self.recent_commits)


class GitCredentials(BaseModel):
    username: str
    token: str


class SourceHost(Protocol):
    """Operations the backport core needs from the hosting service."""

    def get_change_set(self, repository: str, number: int) -> ChangeSet:
        """Raises ChangeSetNotFoundError when the PR does not exist."""
        ...

    def get_branch_context(
        self, repository: str, branch: str, limit: int = 10
    ) -> BranchContext:
        """Raises BranchNotFoundError when the branch does not exist."""
        ...

    def create_pull_request(
        self, repository: str, title: str, body: str, head: str, base: str
    ) -> int:
        ...

    def post_comment(self, repository: str, number: int, body: str) -> int:
        ...

    def update_comment(
        self, repository: str, number: int, comment_id: int, body: str
    ) -> None:
        ...

    def react_to_comment(
        self, repository: str, number: int, comment_id: int, reaction: str
    ) -> None:
        ...

    def get_permission(self, repository: str, username: str) -> str:
        ...

    def git_credentials(self) -> GitCredentials:
        ...
