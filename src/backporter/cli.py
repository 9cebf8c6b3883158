#!/usr/bin/env python3
"""Backporter CLI - LLM-assisted pull request backports."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from backporter.command.backport import BackportCommand
from backporter.command.status import StatusCommand
from backporter.core.config import State
from backporter.core.log import logger


class CliState(State):
    """Backport GitHub pull requests onto release branches.

    Commits are cherry-picked in a throwaway sandbox; merge conflicts
    are resolved by an LLM and only applied when it is confident. The
    result is pushed as a new branch and opened as a pull request.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.llm.model value)
    2. backporter.yaml in the current directory and --include files
    3. ~/.config/backporter/backporter.yaml
    4. .env file for secrets
    5. Environment variables
       (BACKPORTER_CONFIG__GITHUB__TOKEN=value)
    """

    backport: CliSubCommand[BackportCommand]
    status: CliSubCommand[StatusCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
