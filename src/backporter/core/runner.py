"""Shell command execution on top of invoke."""

import contextlib
import os
import platform
from dataclasses import dataclass
from pathlib import Path

from invoke import Context
from invoke.exceptions import CommandTimedOut

from backporter.core.log import logger


@dataclass
class CommandResult:
    """Outcome of one command. Never raised; callers inspect it."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class Runner(Context):
    """invoke.Context whose execute() always returns a CommandResult.

    Named execute() so it does not collide with invoke's own run().
    """

    def kill(self) -> None:
        # invoke sends signal.SIGKILL, which Windows lacks
        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return
        super().kill()

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run command through the shell and capture its output.

        Args:
            command: Command string, values already shell-quoted
            cwd: Working directory
            timeout: Seconds before the command is killed
            env: Extra environment variables merged into os.environ

        Returns:
            CommandResult; timed_out is set when the timeout fired
        """
        kwargs = {"hide": True, "warn": True, "in_stream": False}
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        # Command text is not logged: it may carry a credentialed URL
        logger.trace("exec in {cwd}", cwd=str(cwd or os.getcwd()))

        timed_out = False
        try:
            with self.cd(str(cwd or os.getcwd())):
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            timed_out = True

        return CommandResult(
            command=command,
            exit_code=-1 if timed_out else result.exited,
            stdout=result.stdout,
            stderr=result.stderr,
            timed_out=timed_out,
        )
