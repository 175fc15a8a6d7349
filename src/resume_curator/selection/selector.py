"""Per-category content selection with conflict blocking."""

from __future__ import annotations

import logging

from resume_curator.config import SelectionConfig
from resume_curator.content.conflicts import ConflictGraph
from resume_curator.content.store import ContentStore
from resume_curator.exceptions import EmptySelectionError
from resume_curator.models.content import ContentCategory, ContentItem
from resume_curator.models.selection import ScoredCandidate, SelectionResult
from resume_curator.models.signals import RequirementSignals
from resume_curator.selection.scoring import rank, rank_summaries

logger = logging.getLogger(__name__)

BULLET_POSITIONS = (1, 2)
OVERVIEW_POSITIONS = (1, 2, 3, 4, 5, 6)


class ContentSelector:
    """Selects content category by category, earliest sections first.

    After each category is finalised, the conflict sets of its selected base
    ids are added to the blocked set. Blocked ids are removed from every later
    pool before scoring and never unblocked within a run.
    """

    def __init__(
        self,
        store: ContentStore,
        config: SelectionConfig | None = None,
        *,
        strict: bool = False,
    ):
        self.store = store
        self.config = config or SelectionConfig()
        self.strict = strict
        self.conflicts = ConflictGraph(store.get_conflict_table())
        logger.debug("Conflict table has %d pairs", len(self.conflicts))

    def select(self, signals: RequirementSignals) -> SelectionResult:
        blocked: set[str] = set()
        used: set[str] = set()
        empty: list[str] = []

        def pool(category: ContentCategory, slot: int | None = None) -> list[ContentItem]:
            items = self.store.items_in(category, slot)
            eligible = [i for i in items if i.id not in blocked and i.id not in used]
            dropped = [i.id for i in items if i.id in blocked]
            if dropped:
                logger.info("Excluded from %s by conflicts: %s", category.value, dropped)
            if not eligible:
                self._empty(category, slot, empty)
            return eligible

        def finalize(selected: list[ScoredCandidate]) -> None:
            ids = [c.base_id for c in selected]
            used.update(ids)
            blocked.update(self.conflicts.blocked_ids(ids))

        cap = self.config.score_cap

        summaries = rank_summaries(pool(ContentCategory.SUMMARY), signals, cap=cap)
        finalize(summaries[:1])

        highlights = rank(pool(ContentCategory.HIGHLIGHT), signals, cap=cap)
        highlights = highlights[: self.config.highlight_count]
        finalize(highlights)
        logger.info(
            "Selected highlights: %s",
            ", ".join(f"{c.item_id}({c.total_score})" for c in highlights),
        )

        bullets: dict[int, list[ScoredCandidate]] = {}
        for position in BULLET_POSITIONS:
            ranked = rank(pool(ContentCategory.BULLET, position), signals, cap=cap)
            bullets[position] = ranked[: self.config.bullet_count(position)]
            finalize(bullets[position])
            logger.info(
                "Selected P%d bullets: %s",
                position,
                ", ".join(f"{c.item_id}({c.total_score})" for c in bullets[position]),
            )

        overviews: dict[int, ScoredCandidate] = {}
        for position in OVERVIEW_POSITIONS:
            items = self.store.items_in(ContentCategory.OVERVIEW, position)
            if not items:
                continue
            ranked = rank(pool(ContentCategory.OVERVIEW, position), signals, cap=cap)
            if ranked:
                overviews[position] = ranked[0]
                finalize(ranked[:1])

        return SelectionResult(
            summaries=summaries,
            highlights=highlights,
            bullets=bullets,
            overviews=overviews,
            blocked_ids=frozenset(blocked),
            empty_categories=empty,
        )

    def _empty(self, category: ContentCategory, slot: int | None, empty: list[str]) -> None:
        error = EmptySelectionError(category.value, slot)
        if self.strict:
            raise error
        logger.warning("%s", error)
        empty.append(category.value if slot is None else f"{category.value}:{slot}")
