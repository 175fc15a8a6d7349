"""Pydantic models for the assembled resume."""

from __future__ import annotations

from pydantic import BaseModel, Field

from resume_curator.models.profile import Education, ProfileHeader
from resume_curator.models.stages import ThematicAnchors


class TargetRole(BaseModel):
    company: str = ""
    title: str = ""
    industry: str = ""


class CareerHighlight(BaseModel):
    headline: str = ""
    content: str
    source_id: str = ""


class ResumePosition(BaseModel):
    number: int
    company: str = ""
    title: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    overview: str = ""
    bullets: list[str] = Field(default_factory=list)


class ContentSources(BaseModel):
    summary: list[str] = Field(default_factory=list)
    career_highlights: list[str] = Field(default_factory=list)
    p1_bullets: list[str] = Field(default_factory=list)
    p2_bullets: list[str] = Field(default_factory=list)
    overviews: list[str] = Field(default_factory=list)


class AssembledResume(BaseModel):
    target_role: TargetRole = Field(default_factory=TargetRole)
    header: ProfileHeader = Field(default_factory=ProfileHeader)
    summary: str = ""
    career_highlights: list[CareerHighlight] = Field(default_factory=list)
    positions: list[ResumePosition] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    thematic_anchors: ThematicAnchors = Field(default_factory=ThematicAnchors)
    content_sources: ContentSources = Field(default_factory=ContentSources)

    def position(self, number: int) -> ResumePosition | None:
        for p in self.positions:
            if p.number == number:
                return p
        return None
