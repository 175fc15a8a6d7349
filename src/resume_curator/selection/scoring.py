"""Scoring Engine: tag match scores between content items and requirement signals."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from resume_curator.models.content import ContentItem, ItemTags, Variant
from resume_curator.models.selection import ScoredCandidate
from resume_curator.models.signals import RequirementSignals

logger = logging.getLogger(__name__)

DIRECT_MATCH_POINTS = 3
PARTIAL_MATCH_POINTS = 1
THEME_DIRECT_MATCH_POINTS = 2
THEME_PARTIAL_MATCH_POINTS = 1
DEFAULT_SCORE_CAP = 9


def _normalize(tags: Iterable[str]) -> list[str]:
    return [t.strip().lower() for t in tags if t and t.strip()]


def tag_match_score(
    item_tags: Iterable[str],
    signal_tags: Iterable[str],
    *,
    direct: int = DIRECT_MATCH_POINTS,
    partial: int = PARTIAL_MATCH_POINTS,
    cap: int | None = DEFAULT_SCORE_CAP,
) -> int:
    """Score one tag dimension.

    Each signal tag earns ``direct`` points on an exact match, otherwise
    ``partial`` points if it and any item tag are substrings of one another.
    The sum is capped at ``cap`` (``None`` for uncapped).
    """
    item = set(_normalize(item_tags))
    if not item:
        return 0
    score = 0
    for signal in set(_normalize(signal_tags)):
        if signal in item:
            score += direct
        elif any(tag in signal or signal in tag for tag in item):
            score += partial
    return score if cap is None else min(score, cap)


def score(
    item_tags: ItemTags, signals: RequirementSignals, cap: int = DEFAULT_SCORE_CAP
) -> tuple[int, int]:
    """Return (industry_score, function_score) for an item's tags."""
    return (
        tag_match_score(item_tags.industry, signals.industries, cap=cap),
        tag_match_score(item_tags.function, signals.functions, cap=cap),
    )


def theme_score(variant: Variant, signals: RequirementSignals) -> int:
    return tag_match_score(
        variant.theme_tags,
        signals.themes,
        direct=THEME_DIRECT_MATCH_POINTS,
        partial=THEME_PARTIAL_MATCH_POINTS,
        cap=None,
    )


def choose_variant(
    item: ContentItem, signals: RequirementSignals
) -> tuple[Variant | None, int]:
    """Pick the variant with the highest theme score. Ties keep the first seen."""
    best: Variant | None = None
    best_score = 0
    for variant in item.variants:
        s = theme_score(variant, signals)
        if best is None or s > best_score:
            best, best_score = variant, s
    return best, best_score


def score_item(
    item: ContentItem, signals: RequirementSignals, cap: int = DEFAULT_SCORE_CAP
) -> ScoredCandidate:
    industry, function = score(item.tags, signals, cap=cap)
    variant, t_score = choose_variant(item, signals)
    candidate = ScoredCandidate(
        item_id=variant.id if variant else item.id,
        base_id=item.id,
        category=item.category,
        position_slot=item.position_slot,
        selected_variant_id=variant.id if variant else None,
        variant_label=variant.label if variant else None,
        industry_score=industry,
        function_score=function,
        theme_score=t_score,
        text=(variant.text if variant and variant.text else item.text),
    )
    logger.debug(
        "Scored %s: industry=%d function=%d theme=%d total=%d",
        item.id, industry, function, t_score, candidate.total_score,
    )
    return candidate


def rank(
    items: Iterable[ContentItem], signals: RequirementSignals, cap: int = DEFAULT_SCORE_CAP
) -> list[ScoredCandidate]:
    """Score items and sort by total score, best first.

    The sort is stable, so equal totals keep library order.
    """
    scored = [score_item(item, signals, cap=cap) for item in items]
    return sorted(scored, key=lambda c: c.total_score, reverse=True)


def rank_summaries(
    items: Iterable[ContentItem], signals: RequirementSignals, cap: int = DEFAULT_SCORE_CAP
) -> list[ScoredCandidate]:
    """Summaries rank by function score alone. Ties keep library order."""
    scored = [score_item(item, signals, cap=cap) for item in items]
    return sorted(scored, key=lambda c: c.function_score, reverse=True)
