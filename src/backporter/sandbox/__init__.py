"""Sandboxes that host git operations."""

from backporter.sandbox.base import CommandResult, Sandbox, SandboxProvider
from backporter.sandbox.local import LocalSandbox, LocalSandboxProvider

__all__ = [
    "CommandResult",
    "LocalSandbox",
    "LocalSandboxProvider",
    "Sandbox",
    "SandboxProvider",
]
