"""Structured oracle outputs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


class FileChange(BaseModel):
    path: str
    change_type: Literal["added", "modified", "deleted", "renamed"]
    description: str


class DiffAnalysis(BaseModel):
    """Classification of a change-set. Produced once per attempt."""

    summary: str = Field(description="Brief summary of the changes")
    intent: str = Field(description="What the change is trying to accomplish")
    files: list[FileChange] = Field(default_factory=list)
    change_category: Literal[
        "bugfix", "feature", "refactor", "docs", "test", "config", "other"
    ]
    complexity: Literal["low", "medium", "high"]
    dependencies: list[str] = Field(
        default_factory=list,
        description="External dependencies or imports the change touches",
    )
    risks: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class PotentialConflict(BaseModel):
    file: str
    reason: str
    severity: Literal["low", "medium", "high"]


class BackportFeasibility(BaseModel):
    """Prediction of whether a backport can succeed."""

    can_backport: bool
    confidence: float = Field(description="Confidence between 0 and 1")
    potential_conflicts: list[PotentialConflict] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    required_manual_steps: list[str] = Field(default_factory=list)
    estimated_effort: Literal["trivial", "easy", "moderate", "difficult"]

    model_config = {"frozen": True}

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return _clamp(value)


class ConflictResolution(BaseModel):
    """Proposed content for one conflicted file."""

    resolved_content: str = Field(
        description="Complete file content with conflict markers removed"
    )
    explanation: str
    confidence: float = Field(description="Confidence between 0 and 1")
    alternatives: list[str] = Field(
        default_factory=list, description="Alternative resolutions"
    )

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return _clamp(value)
