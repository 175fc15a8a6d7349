"""Shared pieces of every pipeline stage: context, parsing, prompt blocks."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from resume_curator.config import SelectionConfig
from resume_curator.exceptions import StageParseError
from resume_curator.models.profile import Profile
from resume_curator.models.result import ValidationReport
from resume_curator.models.selection import ScoredCandidate, SelectionResult
from resume_curator.models.signals import RequirementSignals
from resume_curator.models.stages import JDAnalysis
from resume_curator.models.state import AccumulatedState, StateForDownstream
from resume_curator.utils.json_parser import extract_json_object
from resume_curator.validation.structural import StageConstraints


@dataclass(frozen=True)
class StageContext:
    """Read-only inputs for one stage of one run."""

    jd_text: str = ""
    analysis: JDAnalysis | None = None
    signals: RequirementSignals | None = None
    selection: SelectionResult = field(default_factory=SelectionResult)
    profile: Profile = field(default_factory=Profile)
    config: SelectionConfig = field(default_factory=SelectionConfig)
    outputs: Mapping[str, Any] = field(default_factory=dict)  # succeeded stages only


class Stage:
    """One step of the generation pipeline.

    Subclasses set ``name``, ``output_model`` and ``system_prompt`` and
    implement ``build_prompt``. ``requires`` names the stages whose success
    this one depends on.
    """

    name: str = ""
    output_model: type[BaseModel]
    system_prompt: str = ""
    requires: tuple[str, ...] = ()
    uses_analysis_model: bool = False

    def candidates(self, ctx: StageContext) -> list[ScoredCandidate] | None:
        """The stage's source pool, or None when it has no selected pool."""
        return None

    def applicable(self, ctx: StageContext) -> bool:
        pool = self.candidates(ctx)
        return pool is None or bool(pool)

    def constraints(self, ctx: StageContext, state: AccumulatedState) -> StageConstraints:
        pool = self.candidates(ctx)
        return StageConstraints(
            state=state,
            candidate_ids=None if pool is None else frozenset(c.base_id for c in pool),
        )

    def build_prompt(
        self, ctx: StageContext, state: AccumulatedState, previous_issues: Sequence[str]
    ) -> str:
        raise NotImplementedError

    def parse(self, text: str) -> BaseModel:
        try:
            data = extract_json_object(text)
        except ValueError as e:
            raise StageParseError(self.name, [f"Response was not valid JSON: {e}"]) from e
        try:
            return self.output_model.model_validate(data)
        except ValidationError as e:
            issues = [
                f"{'.'.join(str(p) for p in err['loc']) or 'response'}: {err['msg']}"
                for err in e.errors()
            ]
            raise StageParseError(self.name, issues) from e

    def validate(
        self, output: BaseModel, ctx: StageContext, state: AccumulatedState
    ) -> ValidationReport:
        raise NotImplementedError

    def downstream_state(self, output: BaseModel) -> StateForDownstream:
        return getattr(output, "state_for_downstream", None) or StateForDownstream()


# --- prompt blocks ---


def render_jd(analysis: JDAnalysis | None) -> str:
    if analysis is None:
        return ""
    meta = analysis.metadata
    lines = [
        "JOB DESCRIPTION ANALYSIS",
        f"Company: {meta.company}",
        f"Title: {meta.title}",
        f"Industry: {meta.industry}",
        f"Level: {meta.level}",
        "",
    ]
    for section in analysis.sections:
        lines.append(f"Section: {section.name}")
        for kp in section.key_phrases:
            lines.append(f"  - [{kp.weight}] {kp.phrase}")
    if analysis.themes:
        lines.append("")
        lines.append("Themes:")
        for theme in analysis.themes:
            lines.append(f"  - {theme.theme} ({theme.priority})")
    return "\n".join(lines)


def render_candidates(candidates: Sequence[ScoredCandidate], heading: str) -> str:
    lines = [heading]
    for c in candidates:
        label = f" [{c.variant_label}]" if c.variant_label else ""
        lines.append(f"- {c.base_id}{label} (score {c.total_score}): {c.text}")
    return "\n".join(lines)


def render_banned(state: AccumulatedState) -> str:
    """Accumulated state rendered as explicit do-not-reuse constraints."""
    if state.is_empty:
        return ""
    lines = ["BANNED ITEMS - DO NOT REUSE"]
    if state.used_base_ids:
        lines.append(f"Base ids: {', '.join(sorted(state.used_base_ids))}")
    if state.used_leading_verbs:
        lines.append(f"Leading verbs: {', '.join(sorted(state.used_leading_verbs))}")
    if state.used_numeric_claims:
        lines.append(f"Metrics: {', '.join(sorted(state.used_numeric_claims))}")
    if state.used_jd_phrases:
        lines.append(f"JD phrases already used: {', '.join(sorted(state.used_jd_phrases))}")
    return "\n".join(lines)


def render_issues(previous_issues: Sequence[str]) -> str:
    if not previous_issues:
        return ""
    lines = ["PREVIOUS ATTEMPT ISSUES - FIX THESE"]
    lines.extend(f"- {issue}" for issue in previous_issues)
    return "\n".join(lines)


def join_blocks(*blocks: str) -> str:
    return "\n\n".join(b for b in blocks if b)


STATE_SCHEMA = """\
  "state_for_downstream": {
    "used_base_ids": ["every base id you used"],
    "used_verbs": ["every leading verb you used, lower-case"],
    "used_metrics": ["every number or metric you cited, e.g. 40%"],
    "jd_phrases_used": ["JD phrases you addressed"]
  }"""

JD_MAPPING_SCHEMA = """[
      {"phrase_used": "...", "jd_section": "...", "jd_phrase_source": "...", "exact_quote": false}
    ]"""

WRITING_RULES = """\
Rules:
- Never use an em-dash.
- Never use: leveraged, utilized, spearheaded, synergy, passionate, dynamic,
  results-driven, self-starter, team player, responsible for, assisted with.
- Count words carefully; stay inside every word range.
- Respond with JSON only."""
