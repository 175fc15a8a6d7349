"""Pydantic models for Scoring Engine output."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from resume_curator.models.content import ContentCategory


class ScoredCandidate(BaseModel):
    """A base item scored against the run's requirement signals."""

    item_id: str
    base_id: str
    category: ContentCategory
    position_slot: int | None = None
    selected_variant_id: str | None = None
    variant_label: str | None = None
    industry_score: int = 0  # 0-9
    function_score: int = 0  # 0-9
    theme_score: int = 0  # uncapped
    text: str = ""

    model_config = {"frozen": True}

    @computed_field
    @property
    def total_score(self) -> int:
        return self.industry_score + self.function_score + self.theme_score


class SelectionResult(BaseModel):
    """Content chosen for one run, category by category."""

    summaries: list[ScoredCandidate] = Field(default_factory=list)  # ranked, best first
    highlights: list[ScoredCandidate] = Field(default_factory=list)
    bullets: dict[int, list[ScoredCandidate]] = Field(default_factory=dict)
    overviews: dict[int, ScoredCandidate] = Field(default_factory=dict)
    blocked_ids: frozenset[str] = frozenset()
    empty_categories: list[str] = Field(default_factory=list)

    @property
    def summary(self) -> ScoredCandidate | None:
        return self.summaries[0] if self.summaries else None

    def bullets_for(self, position: int) -> list[ScoredCandidate]:
        return self.bullets.get(position, [])

    def selected_base_ids(self) -> set[str]:
        ids = {c.base_id for c in self.highlights}
        for candidates in self.bullets.values():
            ids.update(c.base_id for c in candidates)
        if self.summary is not None:
            ids.add(self.summary.base_id)
        ids.update(c.base_id for c in self.overviews.values())
        return ids
