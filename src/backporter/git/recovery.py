"""Manual recovery instructions for a failed backport."""

from backporter.host.base import Commit


def recovery_commands(
    target_branch: str, branch: str, commits: list[Commit]
) -> list[str]:
    """Shell commands a maintainer can run to finish the backport by hand.

    branch is the name the automated attempt would have pushed. Commits
    are listed in their original order. Without commits (the PR could
    not be read) a placeholder line stands in for them.
    """
    commands = [
        f"git fetch origin {target_branch}",
        f"git checkout -b {branch} origin/{target_branch}",
    ]
    if commits:
        commands.extend(f"git cherry-pick -x {c.sha}" for c in commits)
    else:
        commands.append("git cherry-pick -x <commit-sha>  # each commit of the PR")
    commands.append(f"git push origin {branch}")
    return commands


def recovery_block(
    target_branch: str, branch: str, commits: list[Commit]
) -> str:
    """recovery_commands() as a fenced markdown block."""
    body = "\n".join(recovery_commands(target_branch, branch, commits))
    return f"```bash\n{body}\n```"
