"""Diagnostic record models."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class StageAttemptRecord(BaseModel):
    """One record per stage attempt, delivered to the diagnostics sink."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str
    timestamp: datetime = Field(default_factory=datetime.now)
    stage: str
    attempt: int
    status: str  # "success" | "retry" | "failed"
    tokens_in: int = 0
    tokens_out: int = 0
    cost_estimate: float = 0.0
    duration_ms: int = 0
    issues: list[str] = Field(default_factory=list)
