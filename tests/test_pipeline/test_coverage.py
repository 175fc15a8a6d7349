"""Tests for the JD phrase coverage report."""

from __future__ import annotations

import pytest

from resume_curator.models.stages import (
    HighlightsOutput,
    JDGap,
    JDMappingEntry,
    PositionOutput,
    SummaryOutput,
)
from resume_curator.pipeline.coverage import (
    build_coverage_report,
    collect_jd_mappings,
    grade_for,
)

ALL_PHRASES = [
    "go-to-market strategy", "product positioning", "sales enablement",
    "fintech experience", "cross-functional leadership", "data fluency",
]


def _mappings(*phrases: str) -> list[JDMappingEntry]:
    return [JDMappingEntry(phrase_used=p) for p in phrases]


class TestCoverageReport:
    def test_partial_coverage(self, jd_analysis):
        report = build_coverage_report(
            jd_analysis, _mappings("go-to-market strategy", "product positioning")
        )
        assert report.sections == {"Responsibilities": "Strong", "Qualifications": "Gap"}
        assert (report.high_covered, report.high_total) == (2, 3)
        assert (report.medium_covered, report.medium_total) == (0, 2)
        assert report.unused_high_phrases == ["fintech experience"]
        assert report.score == 52
        assert report.grade == "F"

    def test_full_coverage(self, jd_analysis):
        report = build_coverage_report(jd_analysis, _mappings(*ALL_PHRASES))
        assert report.score == 100
        assert report.grade == "A"
        assert report.unused_high_phrases == []

    def test_single_hit_is_partial(self, jd_analysis):
        report = build_coverage_report(jd_analysis, _mappings("data fluency"))
        assert report.sections["Qualifications"] == "Partial"

    def test_high_risk_gaps_penalised(self, jd_analysis):
        analysis = jd_analysis.model_copy(update={"gaps": [
            JDGap(requirement="Banking license", risk_level="High"),
            JDGap(requirement="MBA", risk_level="High"),
            JDGap(requirement="Travel", risk_level="Low"),
        ]})
        report = build_coverage_report(analysis, _mappings(*ALL_PHRASES))
        assert report.score == 80
        assert report.grade == "B"

    def test_phrase_contained_in_longer_usage(self, jd_analysis):
        report = build_coverage_report(
            jd_analysis, [], extra_phrases=["Led go-to-market strategy for payments"]
        )
        assert report.high_covered == 1

    @pytest.mark.parametrize("score, grade", [(90, "A"), (89, "B"), (70, "C"), (60, "D"), (59, "F")])
    def test_grades(self, score, grade):
        assert grade_for(score) == grade


class TestCollectJDMappings:
    def test_walks_nested_outputs(self, stage_payloads):
        outputs = {
            "summary": SummaryOutput.model_validate(stage_payloads["summary"]),
            "highlights": HighlightsOutput.model_validate(stage_payloads["highlights"]),
            "position_1": PositionOutput.model_validate(stage_payloads["position_1"]),
        }
        assert len(collect_jd_mappings(outputs)) == 9
