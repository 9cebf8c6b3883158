"""Tests for the temporary-directory sandbox."""

import pytest

from backporter.core.errors import SandboxError, SandboxTimeoutError
from backporter.sandbox.local import LocalSandbox, LocalSandboxProvider


@pytest.fixture
def sandbox(tmp_path):
    provider = LocalSandboxProvider(tmp_path / "boxes")
    box = provider.create(timeout=30)
    yield box
    box.stop()


def test_create_provisions_private_directory(sandbox, tmp_path):
    assert sandbox.workdir.is_dir()
    assert sandbox.workdir.parent == tmp_path / "boxes"
    assert sandbox.sandbox_id.startswith("backport-")


def test_run_captures_output(sandbox):
    result = sandbox.run("echo hello")

    assert result.ok
    assert result.stdout.strip() == "hello"


def test_run_reports_failure_without_check(sandbox):
    result = sandbox.run("exit 3")

    assert result.exit_code == 3
    assert not result.ok


def test_run_check_raises(sandbox):
    with pytest.raises(SandboxError):
        sandbox.run("exit 1", check=True)


def test_run_disables_git_prompts(sandbox):
    result = sandbox.run("echo $GIT_TERMINAL_PROMPT")

    assert result.stdout.strip() == "0"


def test_files_round_trip_inside_workdir(sandbox):
    sandbox.write_file("notes.txt", "hi\n")

    assert sandbox.read_file("notes.txt") == "hi\n"
    assert (sandbox.workdir / "notes.txt").read_text() == "hi\n"


def test_paths_cannot_escape(sandbox):
    with pytest.raises(SandboxError, match="escapes"):
        sandbox.read_file("../outside.txt")


def test_missing_file_is_sandbox_error(sandbox):
    with pytest.raises(SandboxError):
        sandbox.read_file("nope.txt")


def test_spent_budget_refuses_commands(tmp_path):
    box = LocalSandbox(tmp_path, timeout=0)

    with pytest.raises(SandboxTimeoutError):
        box.run("true")


def test_command_outliving_budget_times_out(tmp_path):
    workdir = tmp_path / "box"
    workdir.mkdir()
    box = LocalSandbox(workdir, timeout=0.5)

    with pytest.raises(SandboxTimeoutError):
        box.run("sleep 5")


def test_stop_is_idempotent(tmp_path):
    box = LocalSandboxProvider(tmp_path).create(timeout=10)

    box.stop()
    box.stop()

    assert not box.workdir.exists()
    with pytest.raises(SandboxError):
        box.run("true")
