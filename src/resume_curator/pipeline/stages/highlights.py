"""Career highlights stage."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from resume_curator.models.result import ValidationReport
from resume_curator.models.selection import ScoredCandidate
from resume_curator.models.stages import HighlightsOutput
from resume_curator.models.state import AccumulatedState
from resume_curator.pipeline.stages.base import (
    JD_MAPPING_SCHEMA,
    STATE_SCHEMA,
    WRITING_RULES,
    Stage,
    StageContext,
    join_blocks,
    render_banned,
    render_candidates,
    render_issues,
    render_jd,
)
from resume_curator.validation.structural import StageConstraints, validate_highlights

SYSTEM_PROMPT = f"""\
You write the career highlights section of a resume. Rewrite each supplied
source item as one highlight: a short headline plus 35-50 words of content
that starts with a strong verb. Each highlight maps at least 2 job description
phrases. Every highlight starts with a different verb.

Respond with JSON only, in this shape:
{{
  "career_highlights": [
    {{"base_id": "...", "headline": "...", "content": "...", "primary_verb": "...",
     "jd_mapping": {JD_MAPPING_SCHEMA}}}
  ],
{STATE_SCHEMA}
}}

{WRITING_RULES}"""


class HighlightsStage(Stage):
    name = "highlights"
    output_model = HighlightsOutput
    system_prompt = SYSTEM_PROMPT
    requires = ("summary",)

    def candidates(self, ctx: StageContext) -> list[ScoredCandidate]:
        return ctx.selection.highlights

    def required_count(self, ctx: StageContext) -> int:
        return min(ctx.config.highlight_count, len(self.candidates(ctx)))

    def constraints(self, ctx: StageContext, state: AccumulatedState) -> StageConstraints:
        return replace(super().constraints(ctx, state), required_count=self.required_count(ctx))

    def build_prompt(
        self, ctx: StageContext, state: AccumulatedState, previous_issues: Sequence[str]
    ) -> str:
        return join_blocks(
            render_jd(ctx.analysis),
            render_candidates(self.candidates(ctx), "SOURCE ITEMS"),
            f"Write exactly {self.required_count(ctx)} career highlights, one per source item.",
            render_banned(state),
            render_issues(previous_issues),
            "Respond with JSON only.",
        )

    def validate(
        self, output: HighlightsOutput, ctx: StageContext, state: AccumulatedState
    ) -> ValidationReport:
        return validate_highlights(output, self.constraints(ctx, state))
