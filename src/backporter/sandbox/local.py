"""Sandbox backed by a private temporary directory on this host."""

from __future__ import annotations

import shutil
import tempfile
import time
from pathlib import Path

from backporter.core.errors import SandboxError, SandboxTimeoutError
from backporter.core.log import logger
from backporter.core.runner import CommandResult, Runner

# Never let git block on a credential prompt
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class LocalSandbox:
    """Temporary directory plus a wall-clock deadline.

    Every command gets whatever is left of the budget as its timeout,
    so the sandbox as a whole can never outlive it.
    """

    def __init__(self, workdir: Path, timeout: float, runner: Runner | None = None):
        self.workdir = workdir
        self.sandbox_id = workdir.name
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout
        self.runner = runner or Runner()
        self.stopped = False

    def remaining(self) -> float:
        return self.deadline - time.monotonic()

    def _check_budget(self, command: str) -> float:
        remaining = self.remaining()
        if remaining <= 0:
            raise SandboxTimeoutError(
                f"Sandbox {self.sandbox_id} exceeded its {self.timeout:g}s "
                f"budget before running: {command}"
            )
        return remaining

    def run(self, command: str, check: bool = False) -> CommandResult:
        if self.stopped:
            raise SandboxError(f"Sandbox {self.sandbox_id} is stopped")

        remaining = self._check_budget(command)
        result = self.runner.execute(
            command, cwd=self.workdir, timeout=remaining, env=GIT_ENV
        )

        if result.timed_out:
            raise SandboxTimeoutError(
                f"Sandbox {self.sandbox_id} exceeded its {self.timeout:g}s "
                f"budget while running: {command}"
            )
        if check and not result.ok:
            raise SandboxError(
                f"Command failed ({result.exit_code}): {command}: "
                f"{result.stderr.strip()}"
            )
        return result

    def _path(self, path: str) -> Path:
        full = (self.workdir / path).resolve()
        if not full.is_relative_to(self.workdir.resolve()):
            raise SandboxError(f"Path escapes sandbox: {path}")
        return full

    def read_file(self, path: str) -> str:
        try:
            return self._path(path).read_text()
        except OSError as e:
            raise SandboxError(f"Cannot read {path}: {e}") from e

    def write_file(self, path: str, content: str) -> None:
        try:
            self._path(path).write_text(content)
        except OSError as e:
            raise SandboxError(f"Cannot write {path}: {e}") from e

    def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        shutil.rmtree(self.workdir)
        logger.debug("Sandbox stopped", sandbox_id=self.sandbox_id)


class LocalSandboxProvider:
    """Creates LocalSandbox instances under root_dir (system temp if None)."""

    def __init__(self, root_dir: Path | None = None, runner: Runner | None = None):
        self.root_dir = root_dir
        self.runner = runner

    def create(self, timeout: float) -> LocalSandbox:
        try:
            if self.root_dir:
                Path(self.root_dir).mkdir(parents=True, exist_ok=True)
            workdir = Path(tempfile.mkdtemp(prefix="backport-", dir=self.root_dir))
        except OSError as e:
            raise SandboxError(f"Failed to provision sandbox: {e}") from e

        sandbox = LocalSandbox(workdir, timeout, self.runner)
        logger.debug(
            "Sandbox created",
            sandbox_id=sandbox.sandbox_id,
            workdir=str(workdir),
            timeout=timeout,
        )
        return sandbox
