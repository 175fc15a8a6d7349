"""Conflict Resolver: items that encode overlapping facts must not co-occur."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


class ConflictGraph:
    """Symmetric conflict relation built once from a one-directional table.

    Self-conflicts in the source table are dropped with a warning.
    """

    def __init__(self, table: Mapping[str, Iterable[str]] | None = None):
        self._adjacency: dict[str, set[str]] = {}
        for source, targets in (table or {}).items():
            for target in targets:
                if target == source:
                    logger.warning("Ignoring self-conflict for %s", source)
                    continue
                self._adjacency.setdefault(source, set()).add(target)
                self._adjacency.setdefault(target, set()).add(source)

    def conflicts_of(self, item_id: str) -> frozenset[str]:
        return frozenset(self._adjacency.get(item_id, ()))

    def blocked_ids(self, selected_base_ids: Iterable[str]) -> set[str]:
        """Union of the conflict sets of every selected base id."""
        blocked: set[str] = set()
        for base_id in selected_base_ids:
            blocked |= self.conflicts_of(base_id)
        if blocked:
            logger.debug("Blocked by conflicts: %s", sorted(blocked))
        return blocked

    def __len__(self) -> int:
        return sum(len(v) for v in self._adjacency.values()) // 2


def blocked_ids(
    selected_base_ids: Iterable[str], conflict_table: Mapping[str, Iterable[str]]
) -> set[str]:
    return ConflictGraph(conflict_table).blocked_ids(selected_base_ids)
