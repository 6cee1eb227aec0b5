"""Similarity search: embed the query text, then rank the owner's vectors.

An empty result list is a valid answer. Provider failures surface as
EmbeddingUnavailable; callers running an advisory operation decide whether
to degrade to "no results".
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from semlink.db.models import ItemKind, SimilarityResult
from semlink.db.vectors import VectorIndex
from semlink.errors import EmbeddingUnavailable
from semlink.similarity.embeddings import EmbeddingProvider

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_MIN_SCORE = 0.7


class SimilaritySearch:
    """Orchestrates embedding generation, index query and thresholding.

    Args:
        provider: Text → vector capability.
        index: Owner-scoped VectorIndex.
    """

    def __init__(self, provider: EmbeddingProvider, index: VectorIndex) -> None:
        self._provider = provider
        self._index = index

    def find_similar(
        self,
        owner_id: str,
        text: str,
        limit: int = DEFAULT_LIMIT,
        min_score: float = DEFAULT_MIN_SCORE,
        item_kinds: Sequence[ItemKind] | None = None,
    ) -> list[SimilarityResult]:
        """Return *owner_id*'s items most similar to *text*, best-first.

        Raises:
            EmbeddingUnavailable: If the provider cannot embed *text*.
            DimensionMismatch: If the provider's vector length is not D.
        """
        try:
            vector = self._provider.embed(text)
        except EmbeddingUnavailable:
            raise
        except Exception as exc:
            raise EmbeddingUnavailable(f"Embedding failed: {exc}") from exc

        results = self._index.query(owner_id, vector, limit, min_score, item_kinds=item_kinds)
        log.debug(
            "Similarity query for owner %s: %d result(s) at min_score=%.2f",
            owner_id,
            len(results),
            min_score,
        )
        return results
