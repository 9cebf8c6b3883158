"""Tests for {config.*} template substitution."""

import sys

import pytest

from backporter.core.config import State


@pytest.fixture
def mock_argv():
    original = sys.argv.copy()
    sys.argv = ["backporter"]
    yield
    sys.argv = original


def test_store_path_follows_log_root(mock_argv, tmp_path):
    state = State(config={
        "llm": {"model": "test"},
        "log_root": str(tmp_path / "state"),
        "store": {"path": "{config.log_root}/jobs.db"},
    })

    assert state.config.store.path == tmp_path / "state" / "jobs.db"


def test_runtime_fields_preserved(test_config):
    """Per-call fields in command and branch templates stay intact."""
    assert "{sha}" in test_config.git_command("cherry_pick")
    assert test_config.sandbox.branch_template == (
        "backport-pr-{pr_number}-to-{target_branch}"
    )
    assert "{content}" in test_config.prompts["oracle"]["resolve"]


def test_branch_name_from_template(test_config):
    sandbox = test_config.sandbox.model_copy(
        update={"branch_template": "bp/{target_branch}/{pr_number}"}
    )

    assert test_config.sandbox.branch_name(7, "release") == "backport-pr-7-to-release"
    assert sandbox.branch_name(7, "release") == "bp/release/7"


def test_platformdirs_template_resolved(test_config):
    assert "{" not in str(test_config.log_root)
    assert "{" not in str(test_config.store.path)


def test_defaults_loaded(test_config):
    assert test_config.llm.timeout == 120
    assert test_config.llm.retries == 0
    assert test_config.sandbox.timeout == 300
    assert test_config.sandbox.fetch_depth == 50
    assert test_config.github.allowed_permissions == ["admin", "write", "maintain"]
