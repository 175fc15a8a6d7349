"""Position stages: overview plus bullets for the two most recent roles."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from resume_curator.models.result import ValidationReport
from resume_curator.models.selection import ScoredCandidate
from resume_curator.models.stages import PositionOutput
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
from resume_curator.validation.structural import StageConstraints, validate_position

SYSTEM_PROMPT = f"""\
You write one position of a resume: a 40-60 word overview of the role and
its scope, then bullets of 25-40 words each, rewritten from the supplied
source items. Each bullet starts with a different verb and maps at least one
job description phrase.

Respond with JSON only, in this shape:
{{
  "overview": {{"source_id": "...", "content": "...", "jd_mapping": {JD_MAPPING_SCHEMA}}},
  "bullets": [
    {{"base_id": "...", "content": "...", "primary_verb": "...",
     "jd_mapping": {JD_MAPPING_SCHEMA}, "pattern_proof": null}}
  ],
{STATE_SCHEMA}
}}

{WRITING_RULES}"""

PATTERN_PROOF_NOTE = (
    "For every bullet, set pattern_proof to one sentence on how it shows the "
    "same pattern of impact as the most recent role."
)


class PositionStage(Stage):
    output_model = PositionOutput
    system_prompt = SYSTEM_PROMPT

    def __init__(self, position: int):
        self.position = position
        self.name = f"position_{position}"
        self.requires = ("highlights",) if position == 1 else (f"position_{position - 1}",)
        self.require_pattern_proof = position > 1

    def candidates(self, ctx: StageContext) -> list[ScoredCandidate]:
        return ctx.selection.bullets_for(self.position)

    def applicable(self, ctx: StageContext) -> bool:
        # An overview alone still makes a position; its bullets may all be blocked.
        return self.position in ctx.selection.overviews or bool(self.candidates(ctx))

    def required_count(self, ctx: StageContext) -> int:
        return min(ctx.config.bullet_count(self.position), len(self.candidates(ctx)))

    def constraints(self, ctx: StageContext, state: AccumulatedState) -> StageConstraints:
        return replace(super().constraints(ctx, state), required_count=self.required_count(ctx))

    def build_prompt(
        self, ctx: StageContext, state: AccumulatedState, previous_issues: Sequence[str]
    ) -> str:
        role = ctx.profile.position(self.position)
        role_line = (
            f"ROLE: {role.title}, {role.company} ({role.start_date} - {role.end_date})"
            if role else f"ROLE: position {self.position}"
        )
        overview = ctx.selection.overviews.get(self.position)
        return join_blocks(
            render_jd(ctx.analysis),
            role_line,
            f"SOURCE OVERVIEW ({overview.base_id}): {overview.text}" if overview else "",
            render_candidates(self.candidates(ctx), "SOURCE BULLETS"),
            self._task(ctx),
            PATTERN_PROOF_NOTE if self.require_pattern_proof else "",
            render_banned(state),
            render_issues(previous_issues),
            "Respond with JSON only.",
        )

    def _task(self, ctx: StageContext) -> str:
        count = self.required_count(ctx)
        if count == 0:
            return "Write one overview and no bullets. Return an empty bullets list."
        return f"Write one overview and exactly {count} bullets."

    def validate(
        self, output: PositionOutput, ctx: StageContext, state: AccumulatedState
    ) -> ValidationReport:
        return validate_position(
            output,
            self.constraints(ctx, state),
            require_pattern_proof=self.require_pattern_proof,
        )
