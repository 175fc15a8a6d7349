"""Pydantic models for Format Checker and coverage output."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["blocker", "warning", "suggestion"]


class FormatIssue(BaseModel):
    category: str  # emdash, overused_word, summary_length, bullet_length, verb_repetition, overview_length
    severity: Severity
    location: str = ""
    message: str


class FormatReport(BaseModel):
    score: float  # 0-10
    issues: list[FormatIssue] = Field(default_factory=list)
    word_frequency: dict[str, int] = Field(default_factory=dict)  # overused words only

    @property
    def blockers(self) -> list[FormatIssue]:
        return [i for i in self.issues if i.severity == "blocker"]

    @property
    def passed(self) -> bool:
        return not self.blockers


class CoverageReport(BaseModel):
    sections: dict[str, Literal["Strong", "Partial", "Gap"]] = Field(default_factory=dict)
    high_total: int = 0
    high_covered: int = 0
    medium_total: int = 0
    medium_covered: int = 0
    unused_high_phrases: list[str] = Field(default_factory=list)
    score: int = 0  # 0-100
    grade: Literal["A", "B", "C", "D", "F"] = "F"
