"""Turning comments and events into backport jobs."""

from backporter.intake.command import parse_backport_command
from backporter.intake.trigger import (
    BackportTrigger,
    accept_trigger,
    is_authorized,
    params_for,
    trigger_from_event,
    validate_trigger,
)

__all__ = [
    "BackportTrigger",
    "accept_trigger",
    "is_authorized",
    "params_for",
    "parse_backport_command",
    "trigger_from_event",
    "validate_trigger",
]
