"""Owner-scoped vector index over sqlite-vec distance functions.

Vectors are stored as float32 blobs in ``embedded_items``, one per
(owner, item, kind). Queries are exact scans restricted to the caller's
owner id before scoring, so no other tenant's vector can reach the ranking.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import sqlite_vec

from semlink.db.models import (
    EMBEDDABLE_KINDS,
    EmbeddedItem,
    ItemKind,
    SimilarityResult,
)
from semlink.db.repository import Repository
from semlink.errors import DimensionMismatch

log = logging.getLogger(__name__)


def vector_norm(vector: Sequence[float]) -> float:
    """Euclidean magnitude of *vector*."""
    return math.sqrt(sum(x * x for x in vector))


def _check_kind(item_kind: ItemKind | str) -> ItemKind:
    kind = ItemKind(item_kind)
    if kind not in EMBEDDABLE_KINDS:
        raise ValueError(f"Only resources and notes are embedded, got '{kind.value}'")
    return kind


class VectorIndex:
    """Stores one vector per (owner, item id, item kind) and answers cosine queries.

    Args:
        repo: Open Repository; its lock also serialises index access.
        dimensions: Fixed vector length D for this deployment.
    """

    def __init__(self, repo: Repository, dimensions: int) -> None:
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")
        self._repo = repo
        self.dimensions = dimensions

    def _check_dimensions(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimensions:
            raise DimensionMismatch(self.dimensions, len(vector))

    def upsert(
        self,
        owner_id: str,
        item_id: str,
        item_kind: ItemKind,
        vector: Sequence[float],
        content_hash: str = "",
    ) -> None:
        """Replace any existing vector for the key. The write is a single statement.

        Raises:
            DimensionMismatch: If ``len(vector)`` is not D.
        """
        kind = _check_kind(item_kind)
        self._check_dimensions(vector)
        self._repo.upsert_embedding(
            owner_id,
            item_id,
            kind,
            sqlite_vec.serialize_float32(list(vector)),
            self.dimensions,
            vector_norm(vector),
            content_hash,
        )
        log.debug("Indexed %s %s for owner %s", kind.value, item_id, owner_id)

    def remove(self, owner_id: str, item_id: str, item_kind: ItemKind) -> bool:
        """Delete the vector for the key. Returns False if there was none."""
        removed = self._repo.delete_embedding(owner_id, item_id, _check_kind(item_kind))
        if removed:
            log.debug("Removed vector for %s %s", item_kind, item_id)
        return removed

    def get(self, owner_id: str, item_id: str, item_kind: ItemKind) -> EmbeddedItem | None:
        return self._repo.get_embedding(owner_id, item_id, _check_kind(item_kind))

    def query(
        self,
        owner_id: str,
        query_vector: Sequence[float],
        limit: int,
        min_score: float,
        item_kinds: Sequence[ItemKind] | None = None,
    ) -> list[SimilarityResult]:
        """Return up to *limit* of *owner_id*'s items scoring >= *min_score*.

        Sorted by score descending, ties broken by most recent update.

        Raises:
            DimensionMismatch: If ``len(query_vector)`` is not D.
        """
        self._check_dimensions(query_vector)
        if limit < 1:
            return []
        kinds = [_check_kind(k) for k in item_kinds] if item_kinds else None
        rows = self._repo.search_embeddings(
            owner_id,
            sqlite_vec.serialize_float32(list(query_vector)),
            self.dimensions,
            zero_query=vector_norm(query_vector) == 0.0,
            min_score=min_score,
            limit=limit,
            item_kinds=kinds,
        )
        return [
            SimilarityResult(
                item_id=row["item_id"],
                item_kind=ItemKind(row["item_kind"]),
                owner_id=row["owner_id"],
                score=float(row["score"]),
                rank=rank,
            )
            for rank, row in enumerate(rows, start=1)
        ]
