"""GitHub implementation of the source-control host port."""

from __future__ import annotations

from itertools import islice

from github import Auth, Github, GithubException, GithubIntegration, UnknownObjectException

from backporter.core.config import GitHubConfig
from backporter.core.errors import BranchNotFoundError, ChangeSetNotFoundError
from backporter.core.log import logger
from backporter.host.base import BranchContext, ChangeSet, Commit, GitCredentials


def build_diff(files) -> str:
    """Assemble a unified diff from PullRequest.get_files() entries.

    Binary files carry no patch; they appear as a header only.
    """
    parts = []
    for f in files:
        old_name = getattr(f, "previous_filename", None) or f.filename
        header = f"diff --git a/{old_name} b/{f.filename}"
        if f.patch:
            parts.append(
                f"{header}\n--- a/{old_name}\n+++ b/{f.filename}\n{f.patch}"
            )
        else:
            parts.append(f"{header}\n({f.status}, no textual diff)")
    return "\n".join(parts)


class GitHubHost:
    """SourceHost backed by PyGithub.

    Each call is a single API round trip (or one paginated listing);
    nothing here retries.
    """

    def __init__(self, client: Github, token: str):
        self._client = client
        self._token = token
        self._repos = {}

    @classmethod
    def from_config(
        cls, config: GitHubConfig, installation_id: int | None = None
    ) -> GitHubHost:
        """Authenticate as an App installation when App credentials and
        an installation id are present, otherwise with the token.

        Raises:
            ValueError: When no usable credentials are configured
        """
        if config.app_id and config.private_key and installation_id:
            integration = GithubIntegration(
                auth=Auth.AppAuth(config.app_id, config.private_key),
                base_url=config.api_url,
            )
            token = integration.get_access_token(installation_id).token
            client = integration.get_github_for_installation(installation_id)
            logger.debug(
                "Authenticated as GitHub App installation",
                installation_id=installation_id,
            )
            return cls(client, token)

        if not config.token:
            raise ValueError(
                "No GitHub credentials: set config.github.token or "
                "app_id/private_key with an installation id"
            )
        client = Github(auth=Auth.Token(config.token), base_url=config.api_url)
        return cls(client, config.token)

    def _repo(self, repository: str):
        if repository not in self._repos:
            self._repos[repository] = self._client.get_repo(repository)
        return self._repos[repository]

    def get_change_set(self, repository: str, number: int) -> ChangeSet:
        try:
            pr = self._repo(repository).get_pull(number)
        except UnknownObjectException as e:
            raise ChangeSetNotFoundError(repository, number) from e

        commits = [
            Commit(sha=c.sha, message=c.commit.message)
            for c in pr.get_commits()
        ]
        return ChangeSet(
            number=pr.number,
            title=pr.title,
            body=pr.body or "",
            base_branch=pr.base.ref,
            head_branch=pr.head.ref,
            commits=commits,
            diff=build_diff(pr.get_files()),
            merged=bool(pr.merged),
            merge_commit_sha=pr.merge_commit_sha,
        )

    def get_branch_context(
        self, repository: str, branch: str, limit: int = 10
    ) -> BranchContext:
        repo = self._repo(repository)
        try:
            repo.get_branch(branch)
        except GithubException as e:
            if e.status == 404:
                raise BranchNotFoundError(branch) from e
            raise

        recent = [
            f"{c.sha[:7]} {c.commit.message.splitlines()[0] if c.commit.message else ''}"
            for c in islice(repo.get_commits(sha=branch), limit)
        ]
        return BranchContext(name=branch, recent_commits=recent)

    def create_pull_request(
        self, repository: str, title: str, body: str, head: str, base: str
    ) -> int:
        pr = self._repo(repository).create_pull(
            title=title, body=body, head=head, base=base
        )
        return pr.number

    def post_comment(self, repository: str, number: int, body: str) -> int:
        comment = self._repo(repository).get_issue(number).create_comment(body)
        return comment.id

    def update_comment(
        self, repository: str, number: int, comment_id: int, body: str
    ) -> None:
        issue = self._repo(repository).get_issue(number)
        issue.get_comment(comment_id).edit(body)

    def react_to_comment(
        self, repository: str, number: int, comment_id: int, reaction: str
    ) -> None:
        issue = self._repo(repository).get_issue(number)
        issue.get_comment(comment_id).create_reaction(reaction)

    def get_permission(self, repository: str, username: str) -> str:
        return self._repo(repository).get_collaborator_permission(username)

    def git_credentials(self) -> GitCredentials:
        return GitCredentials(username="x-access-token", token=self._token)
