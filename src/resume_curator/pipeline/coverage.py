"""Deterministic JD phrase coverage report."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from resume_curator.models.qa import CoverageReport
from resume_curator.models.stages import JDAnalysis, JDMappingEntry

logger = logging.getLogger(__name__)

SECTION_WEIGHT = 0.5
HIGH_WEIGHT = 0.4
MEDIUM_WEIGHT = 0.1
HIGH_GAP_PENALTY = 10
STRONG_SECTION_PHRASES = 2

GRADES = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


def collect_jd_mappings(outputs: Mapping[str, Any]) -> list[JDMappingEntry]:
    """Every jd_mapping entry in the stage outputs, wherever it is nested."""
    found: list[JDMappingEntry] = []

    def walk(value: Any) -> None:
        if isinstance(value, JDMappingEntry):
            found.append(value)
        elif isinstance(value, (list, tuple)):
            for v in value:
                walk(v)
        elif isinstance(value, BaseModel):
            for name in type(value).model_fields:
                walk(getattr(value, name))

    for output in outputs.values():
        walk(output)
    return found


def _covered(phrase: str, used: Iterable[str]) -> bool:
    p = phrase.strip().lower()
    return bool(p) and any(p == u or p in u for u in used)


def grade_for(score: int) -> str:
    for threshold, grade in GRADES:
        if score >= threshold:
            return grade
    return "F"


def build_coverage_report(
    analysis: JDAnalysis,
    mappings: Iterable[JDMappingEntry],
    extra_phrases: Iterable[str] = (),
) -> CoverageReport:
    used = {
        text.strip().lower()
        for m in mappings
        for text in (m.phrase_used, m.jd_phrase_source)
        if text.strip()
    }
    used.update(p.strip().lower() for p in extra_phrases if p.strip())

    sections: dict[str, str] = {}
    section_points = 0.0
    for section in analysis.sections:
        hits = sum(_covered(kp.phrase, used) for kp in section.key_phrases)
        if hits >= STRONG_SECTION_PHRASES:
            sections[section.name], points = "Strong", 1.0
        elif hits:
            sections[section.name], points = "Partial", 0.5
        else:
            sections[section.name], points = "Gap", 0.0
        section_points += points
    section_score = section_points / max(len(analysis.sections), 1)

    high = analysis.phrases("HIGH")
    medium = analysis.phrases("MEDIUM")
    high_covered = [p for p in high if _covered(p, used)]
    medium_covered = [p for p in medium if _covered(p, used)]
    high_score = len(high_covered) / len(high) if high else 1.0
    medium_score = len(medium_covered) / len(medium) if medium else 1.0

    high_gaps = sum(1 for g in analysis.gaps if g.risk_level == "High")
    raw = (
        section_score * SECTION_WEIGHT + high_score * HIGH_WEIGHT + medium_score * MEDIUM_WEIGHT
    ) * 100 - high_gaps * HIGH_GAP_PENALTY
    score = round(max(0.0, min(100.0, raw)))

    report = CoverageReport(
        sections=sections,
        high_total=len(high),
        high_covered=len(high_covered),
        medium_total=len(medium),
        medium_covered=len(medium_covered),
        unused_high_phrases=[p for p in high if p not in high_covered],
        score=score,
        grade=grade_for(score),
    )
    logger.info(
        "JD coverage: %d/%d HIGH phrases, score %d (%s)",
        report.high_covered, report.high_total, report.score, report.grade,
    )
    return report
