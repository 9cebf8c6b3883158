"""Inbound backport requests: validation, authorization, job creation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from backporter.core.config import GitHubConfig
from backporter.core.errors import TriggerValidationError
from backporter.core.log import logger
from backporter.host.base import SourceHost
from backporter.intake.command import parse_backport_command
from backporter.jobs.base import JobStore
from backporter.jobs.models import Job, JobParams
from backporter.workflow.reports import denial_comment
from backporter.workflow.state import BackportParams


class BackportTrigger(BaseModel):
    """A validated request to backport one PR to one branch."""

    requester: str = Field(min_length=1)
    repository: str = Field(pattern=r"^[\w.-]+/[\w.-]+$")
    pr_number: int = Field(gt=0)
    target_branch: str = Field(min_length=1)
    comment_id: int | None = None
    installation_id: int | None = None


def validate_trigger(data: dict[str, Any]) -> BackportTrigger:
    """Raises:
        TriggerValidationError: When a required field is missing or bad
    """
    try:
        return BackportTrigger.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) for err in e.errors()
        )
        raise TriggerValidationError(
            f"Invalid backport trigger ({fields})"
        ) from e


def trigger_from_event(
    payload: dict[str, Any], bot_name: str = "agent-backport"
) -> BackportTrigger | None:
    """Build a trigger from a GitHub issue_comment webhook payload.

    Returns:
        None unless the payload is a newly created PR comment that
        contains the backport command

    Raises:
        TriggerValidationError: Command present but the payload lacks
            required fields
    """
    if payload.get("action") != "created":
        return None
    issue = payload.get("issue") or {}
    if not issue.get("pull_request"):
        return None

    comment = payload.get("comment") or {}
    target = parse_backport_command(comment.get("body", ""), bot_name)
    if target is None:
        return None

    return validate_trigger({
        "requester": (comment.get("user") or {}).get("login"),
        "repository": (payload.get("repository") or {}).get("full_name"),
        "pr_number": issue.get("number"),
        "target_branch": target,
        "comment_id": comment.get("id"),
        "installation_id": (payload.get("installation") or {}).get("id"),
    })


def is_authorized(
    host: SourceHost, trigger: BackportTrigger, allowed: list[str]
) -> tuple[bool, str]:
    """Return (allowed, permission) for the requester."""
    permission = host.get_permission(trigger.repository, trigger.requester)
    return permission in allowed, permission


def accept_trigger(
    trigger: BackportTrigger,
    store: JobStore,
    host: SourceHost,
    config: GitHubConfig,
) -> Job | None:
    """Authorize the requester and create the job.

    An unauthorized requester gets a denial comment and no job.
    """
    allowed, permission = is_authorized(
        host, trigger, config.allowed_permissions
    )
    if not allowed:
        logger.info(
            "Backport request denied",
            repository=trigger.repository,
            requester=trigger.requester,
            permission=permission,
        )
        host.post_comment(
            trigger.repository,
            trigger.pr_number,
            denial_comment(trigger.requester, permission),
        )
        return None

    job = store.create(JobParams(
        repository=trigger.repository,
        source_pr=trigger.pr_number,
        target_branch=trigger.target_branch,
        requested_by=trigger.requester,
        comment_id=trigger.comment_id,
        installation_id=trigger.installation_id,
    ))
    store.append_log(
        job.id,
        f"Backport of #{trigger.pr_number} to {trigger.target_branch} "
        f"requested by {trigger.requester}",
    )
    return job


def params_for(job: Job) -> BackportParams:
    return BackportParams(
        job_id=job.id,
        repository=job.repository,
        pr_number=job.source_pr,
        target_branch=job.target_branch,
        comment_id=job.comment_id,
        installation_id=job.installation_id,
    )
