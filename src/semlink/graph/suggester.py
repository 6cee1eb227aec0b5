"""Reference suggestions from content similarity.

Suggestions are read-only and unpersisted: accepting one is the caller's
decision (ReferenceGraph.create with the suggested target and type).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from semlink.db.models import EMBEDDABLE_KINDS, ItemKind, ReferenceTarget, ReferenceType
from semlink.db.repository import Repository
from semlink.similarity.search import SimilaritySearch

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
DEFAULT_MIN_SCORE = 0.7


@dataclass
class SuggestedReference:
    """A proposed AI_SUGGESTED edge that has not been written."""

    source_resource_id: str
    target: ReferenceTarget
    score: float
    rank: int
    reference_type: ReferenceType = ReferenceType.AI_SUGGESTED
    context: str = ""


class ReferenceSuggester:
    """Proposes new edges for a resource that are not already in the graph.

    Args:
        search: SimilaritySearch over the owner's resources and notes.
        repo: Repository used to read the resource's existing outgoing edges.
    """

    def __init__(self, search: SimilaritySearch, repo: Repository) -> None:
        self._search = search
        self._repo = repo

    def suggest(
        self,
        owner_id: str,
        resource_id: str,
        text: str,
        limit: int = DEFAULT_LIMIT,
        min_score: float = DEFAULT_MIN_SCORE,
        item_kinds: list[ItemKind] | None = None,
    ) -> list[SuggestedReference]:
        """Return up to *limit* similar items not yet linked from *resource_id*.

        Never raises for search failures: suggestions are advisory and
        degrade to an empty list.
        """
        try:
            existing = self._repo.outgoing_targets(owner_id, resource_id)
            # Over-fetch so self and already-linked items cannot crowd out new ones.
            fetch = limit + len(existing) + 1
            results = self._search.find_similar(
                owner_id,
                text,
                limit=fetch,
                min_score=min_score,
                item_kinds=item_kinds or sorted(EMBEDDABLE_KINDS, key=lambda k: k.value),
            )
        except Exception as exc:
            log.warning("Reference suggestions unavailable for %s: %s", resource_id, exc)
            return []

        suggestions: list[SuggestedReference] = []
        for result in results:
            target = ReferenceTarget(result.item_kind, result.item_id)
            if target.kind == ItemKind.RESOURCE and target.id == resource_id:
                continue
            if target in existing:
                continue
            suggestions.append(
                SuggestedReference(
                    source_resource_id=resource_id,
                    target=target,
                    score=round(result.score, 3),
                    rank=len(suggestions) + 1,
                    context=f"Semantically similar content (score {result.score:.2f})",
                )
            )
            if len(suggestions) >= limit:
                break
        return suggestions
