"""Pydantic models for the read-only content library."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ContentCategory(str, Enum):
    SUMMARY = "summary"
    HIGHLIGHT = "highlight"
    BULLET = "bullet"
    OVERVIEW = "overview"


class ItemTags(BaseModel):
    industry: frozenset[str] = frozenset()
    function: frozenset[str] = frozenset()

    model_config = {"frozen": True}


class Variant(BaseModel):
    """Alternate phrasing of a base item, tagged with emphasis themes."""

    id: str
    base_id: str
    label: str | None = None
    theme_tags: frozenset[str] = frozenset()
    text: str = ""

    model_config = {"frozen": True}


class ContentItem(BaseModel):
    """A base library entry. Never created or mutated by the pipeline."""

    id: str
    category: ContentCategory
    position_slot: int | None = None
    title: str = ""
    text: str = ""
    tags: ItemTags = Field(default_factory=ItemTags)
    variants: list[Variant] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _default_variant_base_ids(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("variants"), list):
            variants = []
            for v in data["variants"]:
                if isinstance(v, dict) and "base_id" not in v:
                    v = {**v, "base_id": data.get("id")}
                variants.append(v)
            data = {**data, "variants": variants}
        return data

    @model_validator(mode="after")
    def _check_variants_belong(self) -> ContentItem:
        for v in self.variants:
            if v.base_id != self.id:
                raise ValueError(
                    f"variant {v.id} declares base_id {v.base_id}, expected {self.id}"
                )
        return self

    def variant(self, variant_id: str) -> Variant | None:
        for v in self.variants:
            if v.id == variant_id:
                return v
        return None
