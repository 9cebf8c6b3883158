"""Sandbox port: an isolated, time-bounded place to run git."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from backporter.core.runner import CommandResult


class Sandbox(Protocol):
    sandbox_id: str
    workdir: Path

    def run(self, command: str, check: bool = False) -> CommandResult:
        """Run a shell-quoted command in the working directory.

        Raises:
            SandboxTimeoutError: When the wall-clock budget is spent
            SandboxError: When check is set and the command fails
        """
        ...

    def read_file(self, path: str) -> str:
        ...

    def write_file(self, path: str, content: str) -> None:
        ...

    def stop(self) -> None:
        """Release the sandbox. Safe to call more than once."""
        ...


class SandboxProvider(Protocol):
    def create(self, timeout: float) -> Sandbox:
        """Provision a sandbox with a hard budget of timeout seconds.

        Raises:
            SandboxError: When provisioning fails
        """
        ...
