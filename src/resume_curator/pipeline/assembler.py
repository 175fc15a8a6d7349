"""Combine the profile and stage outputs into the structured resume."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from resume_curator.models.profile import Profile
from resume_curator.models.resume import (
    AssembledResume,
    CareerHighlight,
    ContentSources,
    ResumePosition,
    TargetRole,
)
from resume_curator.models.stages import (
    EarlyCareerOutput,
    HighlightsOutput,
    JDAnalysis,
    PositionOutput,
    SummaryOutput,
    ThematicAnchors,
)

logger = logging.getLogger(__name__)


def assemble_resume(
    profile: Profile,
    outputs: Mapping[str, Any],
    analysis: JDAnalysis | None = None,
) -> AssembledResume:
    """Build the resume from succeeded stage outputs.

    Stages that were skipped simply contribute nothing.
    """
    summary: SummaryOutput | None = outputs.get("summary")
    highlights: HighlightsOutput | None = outputs.get("highlights")
    early: EarlyCareerOutput | None = outputs.get("early_career")

    positions: list[ResumePosition] = []
    for role in sorted(profile.positions, key=lambda p: p.number):
        entry = ResumePosition(
            number=role.number,
            company=role.company,
            title=role.title,
            location=role.location,
            start_date=role.start_date,
            end_date=role.end_date,
        )
        detail: PositionOutput | None = outputs.get(f"position_{role.number}")
        if detail is not None:
            entry.overview = detail.overview.content
            entry.bullets = [b.content for b in detail.bullets]
        elif early is not None:
            for overview in early.overviews:
                if overview.position == role.number:
                    entry.overview = overview.content
        positions.append(entry)

    p1: PositionOutput | None = outputs.get("position_1")
    p2: PositionOutput | None = outputs.get("position_2")
    overview_sources = [
        o.overview.source_id for o in (p1, p2) if o is not None and o.overview.source_id
    ]
    if early is not None:
        overview_sources += [o.source_id for o in early.overviews if o.source_id]

    target = TargetRole()
    if analysis is not None:
        target = TargetRole(
            company=analysis.metadata.company,
            title=analysis.metadata.title,
            industry=analysis.metadata.industry,
        )

    resume = AssembledResume(
        target_role=target,
        header=profile.header,
        summary=summary.summary.content if summary else "",
        career_highlights=[
            CareerHighlight(headline=h.headline, content=h.content, source_id=h.base_id)
            for h in (highlights.career_highlights if highlights else [])
        ],
        positions=positions,
        education=profile.education,
        thematic_anchors=summary.thematic_anchors if summary else ThematicAnchors(),
        content_sources=ContentSources(
            summary=summary.summary.sources_used if summary else [],
            career_highlights=[h.base_id for h in highlights.career_highlights] if highlights else [],
            p1_bullets=[b.base_id for b in p1.bullets] if p1 else [],
            p2_bullets=[b.base_id for b in p2.bullets] if p2 else [],
            overviews=overview_sources,
        ),
    )
    logger.info(
        "Assembled resume: %d highlights, %d positions",
        len(resume.career_highlights), len(resume.positions),
    )
    return resume
