"""Duplicate detection: strict-threshold similarity with self-exclusion.

Advisory only: any search failure degrades to an empty list.
"""

from __future__ import annotations

import logging

from semlink.db.models import ItemKind, SimilarityResult
from semlink.similarity.search import SimilaritySearch

log = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.8
DEFAULT_LIMIT = 5


class DuplicateDetector:
    """Flags near-duplicate content items.

    Args:
        search: SimilaritySearch over the same index.
        overfetch: Multiplier on *limit* when querying. The query item's own
            vector is usually indexed and would otherwise use up a slot.
    """

    def __init__(self, search: SimilaritySearch, overfetch: int = 2) -> None:
        self._search = search
        self._overfetch = max(1, overfetch)

    def find_duplicates(
        self,
        owner_id: str,
        exclude_item_id: str | None,
        text: str,
        limit: int = DEFAULT_LIMIT,
        threshold: float = DEFAULT_THRESHOLD,
        item_kinds: list[ItemKind] | None = None,
    ) -> list[SimilarityResult]:
        """Return up to *limit* candidates scoring >= *threshold*, never *exclude_item_id*.

        Ranks are renumbered after exclusion.
        """
        fetch = limit * self._overfetch
        if exclude_item_id is not None:
            fetch = max(fetch, limit + 1)
        try:
            results = self._search.find_similar(
                owner_id, text, limit=fetch, min_score=threshold, item_kinds=item_kinds
            )
        except Exception as exc:
            log.warning("Duplicate detection failed: %s", exc)
            return []

        candidates = [r for r in results if r.item_id != exclude_item_id][:limit]
        for rank, result in enumerate(candidates, start=1):
            result.rank = rank
        return candidates
