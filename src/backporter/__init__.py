"""Automated pull request backports with LLM conflict resolution."""

__version__ = "0.1.0"
