"""Summary stage: one 140-160 word professional summary."""

from __future__ import annotations

from collections.abc import Sequence

from resume_curator.models.result import ValidationReport
from resume_curator.models.selection import ScoredCandidate
from resume_curator.models.stages import SummaryOutput
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
from resume_curator.validation.structural import validate_summary

SYSTEM_PROMPT = f"""\
You write the professional summary at the top of a resume. Pick a positioning
for the candidate against the job, then write one summary of 140-160 words
built from the supplied source summary. Map at least 3 job description
phrases.

Respond with JSON only, in this shape:
{{
  "positioning_decision": {{"approach": "...", "rationale": "..."}},
  "summary": {{"content": "...", "sources_used": ["summary base ids"]}},
  "jd_mapping": {JD_MAPPING_SCHEMA},
  "thematic_anchors": {{
    "primary_narrative": "...", "distinctive_value": "...", "tone_established": "..."
  }},
{STATE_SCHEMA}
}}

{WRITING_RULES}"""


class SummaryStage(Stage):
    name = "summary"
    output_model = SummaryOutput
    system_prompt = SYSTEM_PROMPT
    requires = ("analysis",)

    def candidates(self, ctx: StageContext) -> list[ScoredCandidate]:
        # Only the selected summary had its conflicts blocked.
        summary = ctx.selection.summary
        return [summary] if summary is not None else []

    def build_prompt(
        self, ctx: StageContext, state: AccumulatedState, previous_issues: Sequence[str]
    ) -> str:
        return join_blocks(
            render_jd(ctx.analysis),
            render_candidates(
                self.candidates(ctx), "SOURCE SUMMARY"
            ),
            render_banned(state),
            render_issues(previous_issues),
            "Write the summary now. Respond with JSON only.",
        )

    def validate(
        self, output: SummaryOutput, ctx: StageContext, state: AccumulatedState
    ) -> ValidationReport:
        return validate_summary(output, self.constraints(ctx, state))
