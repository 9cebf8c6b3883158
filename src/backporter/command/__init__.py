"""CLI command modules for backporter."""

from backporter.command.backport import BackportCommand
from backporter.command.status import StatusCommand

__all__ = ["BackportCommand", "StatusCommand"]
