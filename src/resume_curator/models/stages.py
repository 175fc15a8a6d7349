"""Pydantic models for each pipeline stage's structured output."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from resume_curator.models.state import StateForDownstream


# --- JD analysis ---


class JDMetadata(BaseModel):
    company: str = ""
    title: str = ""
    industry: str = ""
    level: str = ""
    location: str | None = None
    reports_to: str | None = None


class KeyPhrase(BaseModel):
    phrase: str
    weight: Literal["HIGH", "MEDIUM", "LOW"] = "MEDIUM"


class JDSection(BaseModel):
    name: str
    summary: str = ""
    key_phrases: list[KeyPhrase] = Field(default_factory=list)


class JDTheme(BaseModel):
    theme: str
    evidence: list[str] = Field(default_factory=list)
    priority: Literal["Critical", "High", "Medium", "Low"] = "Medium"


class JDGap(BaseModel):
    requirement: str
    risk_level: Literal["High", "Medium", "Low"] = "Medium"
    notes: str = ""


class JDAnalysis(BaseModel):
    metadata: JDMetadata = Field(default_factory=JDMetadata)
    sections: list[JDSection] = Field(default_factory=list)
    themes: list[JDTheme] = Field(default_factory=list)
    role_functions: list[str] = Field(default_factory=list)
    ats_keywords: list[str] = Field(default_factory=list)
    gaps: list[JDGap] = Field(default_factory=list)

    def phrases(self, *weights: str) -> list[str]:
        """All key phrases, optionally limited to the given weights."""
        return [
            kp.phrase
            for section in self.sections
            for kp in section.key_phrases
            if not weights or kp.weight in weights
        ]


# --- shared pieces ---


class JDMappingEntry(BaseModel):
    phrase_used: str
    jd_section: str = ""
    jd_phrase_source: str = ""
    exact_quote: bool = False


class ThematicAnchors(BaseModel):
    primary_narrative: str = ""
    distinctive_value: str = ""
    tone_established: str = ""


# --- summary ---


class PositioningDecision(BaseModel):
    approach: str = ""
    rationale: str = ""


class SummaryContent(BaseModel):
    content: str
    sources_used: list[str] = Field(default_factory=list)


class SummaryOutput(BaseModel):
    positioning_decision: PositioningDecision = Field(default_factory=PositioningDecision)
    summary: SummaryContent
    jd_mapping: list[JDMappingEntry] = Field(default_factory=list)
    thematic_anchors: ThematicAnchors = Field(default_factory=ThematicAnchors)
    state_for_downstream: StateForDownstream = Field(default_factory=StateForDownstream)


# --- career highlights ---


class HighlightEntry(BaseModel):
    base_id: str
    headline: str = ""
    content: str
    primary_verb: str = ""
    jd_mapping: list[JDMappingEntry] = Field(default_factory=list)


class HighlightsOutput(BaseModel):
    career_highlights: list[HighlightEntry]
    state_for_downstream: StateForDownstream = Field(default_factory=StateForDownstream)


# --- positions 1 and 2 ---


class OverviewEntry(BaseModel):
    source_id: str = ""
    content: str
    jd_mapping: list[JDMappingEntry] = Field(default_factory=list)


class BulletEntry(BaseModel):
    base_id: str
    content: str
    primary_verb: str = ""
    jd_mapping: list[JDMappingEntry] = Field(default_factory=list)
    pattern_proof: str | None = None  # required for position 2


class PositionOutput(BaseModel):
    overview: OverviewEntry
    bullets: list[BulletEntry]
    state_for_downstream: StateForDownstream = Field(default_factory=StateForDownstream)


# --- positions 3 and later ---


class EarlyOverviewEntry(BaseModel):
    position: int
    source_id: str = ""
    content: str
    starting_verb: str = ""


class EarlyCareerOutput(BaseModel):
    overviews: list[EarlyOverviewEntry]
    verbs_used: list[str] = Field(default_factory=list)
    trajectory_narrative: str = ""
    state_for_downstream: StateForDownstream = Field(default_factory=StateForDownstream)
