"""Validation and per-stage result models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    message: str
    field: str = ""
    retryable: bool = True

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return self.message


class ValidationReport(BaseModel):
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def can_retry(self) -> bool:
        return bool(self.issues) and all(i.retryable for i in self.issues)

    @property
    def messages(self) -> list[str]:
        return [i.message for i in self.issues]


class StageStatus(str, Enum):
    SUCCESS = "success"
    RETRY = "retry"  # succeeded after more than one attempt
    FAILED = "failed"


class StageResult(BaseModel):
    """Outcome of one stage in one run. Immutable once the stage completes."""

    stage_name: str
    status: StageStatus
    attempts: int
    parsed_output: Any = None
    validation_issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    tokens_in: int = 0
    tokens_out: int = 0
    cost_estimate: float = 0.0
    duration_ms: int = 0

    model_config = {"frozen": True}

    @property
    def succeeded(self) -> bool:
        return self.status is not StageStatus.FAILED
