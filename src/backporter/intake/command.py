"""Backport command parsing."""

import re


def command_pattern(bot_name: str) -> re.Pattern:
    return re.compile(
        rf"@{re.escape(bot_name)}\s+backport\s+to\s+(\S+)", re.IGNORECASE
    )


def parse_backport_command(body: str, bot_name: str = "agent-backport") -> str | None:
    """Extract the target branch from "@<bot> backport to <branch>".

    Returns:
        The branch (one whitespace-delimited token), or None
    """
    match = command_pattern(bot_name).search(body or "")
    return match.group(1) if match else None
