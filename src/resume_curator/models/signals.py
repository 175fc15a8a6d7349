"""Requirement signals derived once per run from the job description."""

from __future__ import annotations

from pydantic import BaseModel


class RequirementSignals(BaseModel):
    industries: frozenset[str] = frozenset()
    functions: frozenset[str] = frozenset()
    themes: frozenset[str] = frozenset()
    keywords: frozenset[str] = frozenset()

    model_config = {"frozen": True}
