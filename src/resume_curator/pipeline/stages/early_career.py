"""Early career stage: short overviews for positions 3 and later."""

from __future__ import annotations

from collections.abc import Sequence

from resume_curator.models.result import ValidationReport
from resume_curator.models.stages import EarlyCareerOutput
from resume_curator.models.state import AccumulatedState, StateForDownstream
from resume_curator.pipeline.stages.base import (
    STATE_SCHEMA,
    WRITING_RULES,
    Stage,
    StageContext,
    join_blocks,
    render_banned,
    render_issues,
    render_jd,
)
from resume_curator.validation.structural import validate_early_career

SYSTEM_PROMPT = f"""\
You write the earlier roles of a resume: one overview of 20-40 words per
position, each starting with a different verb, plus one sentence describing
the career trajectory across them.

Respond with JSON only, in this shape:
{{
  "overviews": [
    {{"position": 3, "source_id": "...", "content": "...", "starting_verb": "..."}}
  ],
  "verbs_used": ["..."],
  "trajectory_narrative": "...",
{STATE_SCHEMA}
}}

{WRITING_RULES}"""


class EarlyCareerStage(Stage):
    name = "early_career"
    output_model = EarlyCareerOutput
    system_prompt = SYSTEM_PROMPT
    requires = ("position_2",)

    def positions(self, ctx: StageContext) -> list[int]:
        return [p.number for p in ctx.profile.early_positions]

    def applicable(self, ctx: StageContext) -> bool:
        return bool(self.positions(ctx))

    def build_prompt(
        self, ctx: StageContext, state: AccumulatedState, previous_issues: Sequence[str]
    ) -> str:
        lines = ["POSITIONS"]
        for p in ctx.profile.early_positions:
            lines.append(f"- Position {p.number}: {p.title}, {p.company} ({p.start_date} - {p.end_date})")
            source = ctx.selection.overviews.get(p.number)
            if source is not None:
                lines.append(f"  Source ({source.base_id}): {source.text}")
        return join_blocks(
            render_jd(ctx.analysis),
            "\n".join(lines),
            f"Write exactly {len(self.positions(ctx))} overviews.",
            render_banned(state),
            render_issues(previous_issues),
            "Respond with JSON only.",
        )

    def validate(
        self, output: EarlyCareerOutput, ctx: StageContext, state: AccumulatedState
    ) -> ValidationReport:
        return validate_early_career(output, self.constraints(ctx, state), self.positions(ctx))

    def downstream_state(self, output: EarlyCareerOutput) -> StateForDownstream:
        declared = output.state_for_downstream
        return StateForDownstream(
            used_base_ids=declared.used_base_ids,
            used_verbs=[*declared.used_verbs, *output.verbs_used],
            used_metrics=declared.used_metrics,
            jd_phrases_used=declared.jd_phrases_used,
        )
