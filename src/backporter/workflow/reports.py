"""Text of the pull request and comments posted back to the host."""

from backporter.git.recovery import recovery_block
from backporter.host.base import Commit
from backporter.model.types import BackportFeasibility, DiffAnalysis


def pr_title(target_branch: str, title: str) -> str:
    return f"[Backport {target_branch}] {title}"


def fallback_pr_body(
    pr_number: int,
    target_branch: str,
    analysis: DiffAnalysis | None,
    resolved_conflicts: int,
) -> str:
    """PR body used when the oracle cannot write one."""
    lines = [
        f"This is an automated backport of #{pr_number} to `{target_branch}`.",
    ]
    if analysis is not None:
        lines += ["", "### Summary", "", analysis.summary]
    if resolved_conflicts:
        lines += [
            "",
            f"{resolved_conflicts} conflict(s) were resolved automatically; "
            "please review them carefully.",
        ]
    lines += ["", "Created by agent-backport."]
    return "\n".join(lines)


def success_comment(
    target_branch: str, result_pr: int, resolved_conflicts: int
) -> str:
    body = f"✅ Successfully backported to `{target_branch}`!\n\nSee #{result_pr}"
    if resolved_conflicts:
        body += (
            f"\n\n{resolved_conflicts} conflict(s) were resolved automatically."
        )
    return body


def failure_comment(
    target_branch: str, branch: str, error: str, commits: list[Commit]
) -> str:
    return (
        f"❌ Failed to backport to `{target_branch}`.\n\n"
        f"**Error:** {error}\n\n"
        "### Manual Backport Instructions\n\n"
        f"{recovery_block(target_branch, branch, commits)}"
    )


def denial_comment(requester: str, permission: str) -> str:
    return (
        f"@{requester} you need write access to this repository to request "
        f"a backport (current permission: `{permission}`)."
    )


def infeasible_error(feasibility: BackportFeasibility) -> str:
    """Failure text for a backport the oracle refused, with its reasons
    and recommendations as given."""
    lines = [
        "Backport is not feasible "
        f"(confidence {feasibility.confidence:.2f}).",
    ]
    if feasibility.potential_conflicts:
        lines += ["", "Potential conflicts:"]
        lines += [
            f"- {c.file} ({c.severity}): {c.reason}"
            for c in feasibility.potential_conflicts
        ]
    if feasibility.recommendations:
        lines += ["", "Recommendations:"]
        lines += [f"- {r}" for r in feasibility.recommendations]
    if feasibility.required_manual_steps:
        lines += ["", "Required manual steps:"]
        lines += [f"- {s}" for s in feasibility.required_manual_steps]
    return "\n".join(lines)
