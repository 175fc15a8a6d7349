"""JD analysis stage: job description text to a typed JDAnalysis."""

from __future__ import annotations

from collections.abc import Sequence

from resume_curator.models.result import ValidationReport
from resume_curator.models.stages import JDAnalysis
from resume_curator.models.state import AccumulatedState, StateForDownstream
from resume_curator.pipeline.stages.base import Stage, StageContext, join_blocks, render_issues
from resume_curator.validation.structural import validate_jd_analysis

SYSTEM_PROMPT = """\
You are a job description analyst. Break the job description into its
sections and extract the phrases a resume must address.

Respond with JSON only, in this shape:
{
  "metadata": {
    "company": "...", "title": "...", "industry": "...", "level": "...",
    "location": null, "reports_to": null
  },
  "sections": [
    {"name": "...", "summary": "...",
     "key_phrases": [{"phrase": "...", "weight": "HIGH|MEDIUM|LOW"}]}
  ],
  "themes": [{"theme": "...", "evidence": ["..."], "priority": "Critical|High|Medium|Low"}],
  "role_functions": ["product-marketing", "..."],
  "ats_keywords": ["..."],
  "gaps": [{"requirement": "...", "risk_level": "High|Medium|Low", "notes": "..."}]
}

Rules:
- Every section needs at least 3 key phrases, quoted from the text where possible.
- Do not infer requirements the job description does not state.
- role_functions are lower-case kebab-case tags."""


class AnalysisStage(Stage):
    name = "analysis"
    output_model = JDAnalysis
    system_prompt = SYSTEM_PROMPT
    uses_analysis_model = True

    def build_prompt(
        self, ctx: StageContext, state: AccumulatedState, previous_issues: Sequence[str]
    ) -> str:
        return join_blocks(
            f"Analyze this job description:\n\n---\n{ctx.jd_text}\n---",
            render_issues(previous_issues),
            "Respond with JSON only.",
        )

    def validate(
        self, output: JDAnalysis, ctx: StageContext, state: AccumulatedState
    ) -> ValidationReport:
        return validate_jd_analysis(output)

    def downstream_state(self, output: JDAnalysis) -> StateForDownstream:
        return StateForDownstream()
