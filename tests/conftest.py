"""Pytest configuration and fixtures for backporter tests."""

import os
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

from backporter.core.errors import BranchNotFoundError, ChangeSetNotFoundError
from backporter.core.log import ConsoleSink, setup_logger
from backporter.host.base import BranchContext, ChangeSet, Commit, GitCredentials
from backporter.model.types import (
    BackportFeasibility,
    ConflictResolution,
    DiffAnalysis,
)
from backporter.sandbox.local import LocalSandboxProvider

GIT_ENV = {
    **os.environ,
    "GIT_AUTHOR_NAME": "Test Author",
    "GIT_AUTHOR_EMAIL": "author@example.com",
    "GIT_COMMITTER_NAME": "Test Author",
    "GIT_COMMITTER_EMAIL": "author@example.com",
    "GIT_CONFIG_GLOBAL": "/dev/null",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env=GIT_ENV,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only logging so tests never talk to logfire.dev."""
    test_log_root = Path(tempfile.gettempdir()) / "backporter-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(scope="session")
def test_config():
    """Load configuration from the package defaults.

    sys.argv is replaced so pytest's own arguments do not reach the
    settings CLI parser.
    """
    from backporter.core.config import State

    old_argv = sys.argv
    sys.argv = ['backporter']

    try:
        state = State()
        return state.config
    finally:
        sys.argv = old_argv


@pytest.fixture
def config(test_config, remote):
    """Per-test copy of the configuration pointed at the local remote."""
    config = test_config.model_copy(deep=True)
    config.github.clone_url = remote.url
    config.sandbox.timeout = 60
    return config


# ============================================================
# Local git remote
# ============================================================

class RemoteRepo:
    """A bare repository standing in for GitHub, plus a clone used to
    author commits and push them.

    Layout after construction:
        main:    base commit (app.py, README)
        release: branched from main's base commit
    """

    def __init__(self, root: Path):
        self.bare = root / "origin.git"
        self.work = root / "work"
        root.mkdir(parents=True, exist_ok=True)
        run_git(root, "init", "--quiet", "--bare", str(self.bare))
        run_git(root, "init", "--quiet", str(self.work))
        run_git(self.work, "checkout", "--quiet", "-b", "main")
        run_git(self.work, "remote", "add", "origin", self.url)

        self.write("app.py", "line1\nline2\nline3\n")
        self.write("README", "widget\n")
        self.base = self.commit("Initial commit")
        self.git("branch", "release")
        self.push("main", "release")

    @property
    def url(self) -> str:
        return self.bare.as_uri()

    def git(self, *args: str) -> str:
        return run_git(self.work, *args)

    def write(self, path: str, content: str) -> None:
        target = self.work / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def commit(self, message: str) -> str:
        self.git("add", "-A")
        self.git("commit", "--quiet", "-m", message)
        return self.git("rev-parse", "HEAD")

    def checkout(self, branch: str, start: str | None = None) -> None:
        if start:
            self.git("checkout", "--quiet", "-B", branch, start)
        else:
            self.git("checkout", "--quiet", branch)

    def push(self, *refspecs: str) -> None:
        self.git("push", "--quiet", "--force", "origin", *refspecs)

    def commit_on(self, branch: str, path: str, content: str, message: str) -> Commit:
        """Commit one file change on branch and push it."""
        self.checkout(branch)
        self.write(path, content)
        sha = self.commit(message)
        self.push(branch)
        return Commit(sha=sha, message=message)

    def branches(self) -> set[str]:
        out = run_git(
            self.bare, "for-each-ref", "--format=%(refname:short)", "refs/heads"
        )
        return set(out.splitlines())

    def subjects(self, branch: str) -> list[str]:
        """Commit subjects on a remote branch, newest first."""
        return run_git(self.bare, "log", "--format=%s", branch).splitlines()

    def message(self, branch: str) -> str:
        return run_git(self.bare, "log", "-1", "--format=%B", branch)

    def show(self, branch: str, path: str) -> str:
        return run_git(self.bare, "show", f"{branch}:{path}") + "\n"

    def head(self, branch: str) -> str:
        return run_git(self.bare, "rev-parse", branch)


@pytest.fixture
def remote(tmp_path):
    repo = RemoteRepo(tmp_path / "remote")
    repo.checkout("feature", "main")
    return repo


# ============================================================
# Stub collaborators
# ============================================================

class StubHost:
    """In-memory SourceHost recording every call."""

    def __init__(self, change_set: ChangeSet, branches=("release",), permission="write"):
        self.change_set = change_set
        self.branches = set(branches)
        self.permission = permission
        self.calls = []
        self.comments = []
        self.pulls = []
        self.reactions = []
        self.fail_reaction = False
        self.fail_comment = False

    def get_change_set(self, repository, number):
        self.calls.append("get_change_set")
        if number != self.change_set.number:
            raise ChangeSetNotFoundError(repository, number)
        return self.change_set

    def get_branch_context(self, repository, branch, limit=10):
        self.calls.append("get_branch_context")
        if branch not in self.branches:
            raise BranchNotFoundError(branch)
        return BranchContext(name=branch, recent_commits=["abc1234 Release prep"])

    def create_pull_request(self, repository, title, body, head, base):
        self.calls.append("create_pull_request")
        self.pulls.append(
            {"title": title, "body": body, "head": head, "base": base}
        )
        return 100 + len(self.pulls)

    def post_comment(self, repository, number, body):
        self.calls.append("post_comment")
        if self.fail_comment:
            raise ConnectionError("comments are down")
        self.comments.append(body)
        return len(self.comments)

    def update_comment(self, repository, number, comment_id, body):
        self.calls.append("update_comment")

    def react_to_comment(self, repository, number, comment_id, reaction):
        self.calls.append("react_to_comment")
        if self.fail_reaction:
            raise ConnectionError("reactions are down")
        self.reactions.append(reaction)

    def get_permission(self, repository, username):
        self.calls.append("get_permission")
        return self.permission

    def git_credentials(self):
        return GitCredentials(username="x-access-token", token="s3cret-token")


class StubOracle:
    """Oracle with canned answers.

    raise_in maps a method name to an exception that method raises.
    """

    def __init__(
        self,
        resolve_confidence: float = 0.9,
        resolved_content: str = "line1\nresolved\nline3\n",
        feasibility: BackportFeasibility | None = None,
        raise_in: dict | None = None,
    ):
        self.resolve_confidence = resolve_confidence
        self.resolved_content = resolved_content
        self.feasibility = feasibility or BackportFeasibility(
            can_backport=True, confidence=0.9, estimated_effort="easy"
        )
        self.raise_in = raise_in or {}
        self.calls = []

    def _enter(self, name):
        self.calls.append(name)
        if name in self.raise_in:
            raise self.raise_in[name]

    async def analyze_diff(self, diff, title, description):
        self._enter("analyze_diff")
        return DiffAnalysis(
            summary="Fix widget rendering",
            intent="Render the widget correctly",
            change_category="bugfix",
            complexity="low",
        )

    async def analyze_feasibility(
        self, diff, analysis, source_branch, target_branch, target_context
    ):
        self._enter("analyze_feasibility")
        return self.feasibility

    async def resolve_conflict(self, marked, theirs, ours, intent):
        self._enter("resolve_conflict")
        return ConflictResolution(
            resolved_content=self.resolved_content,
            explanation="kept the incoming change",
            confidence=self.resolve_confidence,
        )

    async def describe_backport(
        self, pr_number, title, target_branch, analysis, feasibility,
        resolved_conflicts,
    ):
        self._enter("describe_backport")
        return f"Backport of #{pr_number}"


class RecordingProvider:
    """LocalSandboxProvider that remembers what it created."""

    def __init__(self, root_dir=None):
        self.inner = LocalSandboxProvider(root_dir)
        self.sandboxes = []

    def create(self, timeout):
        sandbox = self.inner.create(timeout)
        self.sandboxes.append(sandbox)
        return sandbox


@pytest.fixture
def make_host():
    return StubHost


@pytest.fixture
def make_oracle():
    return StubOracle


@pytest.fixture
def provider(tmp_path):
    return RecordingProvider(tmp_path / "sandboxes")
