"""Accumulated cross-stage state and the per-stage delta that feeds it."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


def _normalize(values: object) -> object:
    if isinstance(values, (list, tuple, set, frozenset)):
        return [str(v).strip().lower() for v in values if str(v).strip()]
    return values


class StateForDownstream(BaseModel):
    """What a stage declares it used. The only channel for constraint propagation."""

    used_base_ids: list[str] = Field(default_factory=list)
    used_verbs: list[str] = Field(default_factory=list)
    used_metrics: list[str] = Field(default_factory=list)
    jd_phrases_used: list[str] = Field(default_factory=list)


class AccumulatedState(BaseModel):
    """Run-scoped record of everything earlier stages already used.

    Immutable: ``merge`` returns a new snapshot, so a stage only ever sees
    the union of its successful predecessors.
    """

    used_base_ids: frozenset[str] = frozenset()
    used_leading_verbs: frozenset[str] = frozenset()
    used_numeric_claims: frozenset[str] = frozenset()
    used_jd_phrases: frozenset[str] = frozenset()

    model_config = {"frozen": True}

    @field_validator(
        "used_leading_verbs", "used_numeric_claims", "used_jd_phrases", mode="before"
    )
    @classmethod
    def _lowercase(cls, v: object) -> object:
        return _normalize(v)

    def merge(self, delta: StateForDownstream) -> AccumulatedState:
        return AccumulatedState(
            used_base_ids=self.used_base_ids | {b.strip() for b in delta.used_base_ids if b.strip()},
            used_leading_verbs=self.used_leading_verbs | set(_normalize(delta.used_verbs)),
            used_numeric_claims=self.used_numeric_claims | set(_normalize(delta.used_metrics)),
            used_jd_phrases=self.used_jd_phrases | set(_normalize(delta.jd_phrases_used)),
        )

    def sizes(self) -> tuple[int, int, int, int]:
        return (
            len(self.used_base_ids),
            len(self.used_leading_verbs),
            len(self.used_numeric_claims),
            len(self.used_jd_phrases),
        )

    @property
    def is_empty(self) -> bool:
        return not any(self.sizes())
