"""Embedding providers and the writer that keeps the vector index current.

The engine only needs ``text -> vector``; anything with an ``embed`` method
satisfies EmbeddingProvider, so tests pass a deterministic stub.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Protocol

from semlink.db.models import ItemKind
from semlink.db.vectors import VectorIndex
from semlink.errors import EmbeddingUnavailable
from semlink.similarity import llm_client

log = logging.getLogger(__name__)

# Inputs longer than this are truncated before embedding.
_MAX_EMBED_CHARS = 8000


def hash_text(text: str) -> str:
    """Return a stable hash of source text, used to skip unchanged items."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def clean_text(text: str) -> str:
    """Collapse newlines and trim; the form that is actually embedded."""
    return text.replace("\n", " ").strip()[:_MAX_EMBED_CHARS]


class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> list[float]:
        """Return a vector for *text* or raise EmbeddingUnavailable."""
        ...


class LiteLLMEmbeddingProvider:
    """Embeds text through ``litellm.embedding()`` (via llm_client.embed).

    Args:
        model: LiteLLM embedding model string (provider/model format).
        num_retries: Transient-error retries handled by LiteLLM.
    """

    def __init__(self, model: str = "openai/text-embedding-3-small", num_retries: int = 3) -> None:
        self.model = model
        self._num_retries = num_retries

    def embed(self, text: str) -> list[float]:
        cleaned = clean_text(text)
        if not cleaned:
            raise EmbeddingUnavailable("Cannot embed empty text.")
        try:
            return llm_client.embed(self.model, cleaned, num_retries=self._num_retries)
        except Exception as exc:
            raise EmbeddingUnavailable(
                f"Embedding model '{self.model}' failed: {exc}"
            ) from exc


class EmbeddingWriter:
    """Generate and store vectors for content items.

    Args:
        provider: Text → vector capability.
        index: Target VectorIndex.
    """

    def __init__(self, provider: EmbeddingProvider, index: VectorIndex) -> None:
        self._provider = provider
        self._index = index

    def index_item(
        self, owner_id: str, item_id: str, item_kind: ItemKind, text: str, *, force: bool = False
    ) -> bool:
        """Embed *text* and upsert it unless the stored hash already matches.

        The embedding is computed before anything is written, so a provider
        failure leaves the previous vector in place.

        Returns:
            True if a vector was written, False if the item was unchanged.

        Raises:
            EmbeddingUnavailable: If the provider fails or *text* is empty.
            DimensionMismatch: If the provider returns a vector of the wrong size.
        """
        if not text.strip():
            raise EmbeddingUnavailable(f"Item '{item_id}' has no text to embed.")
        content_hash = hash_text(clean_text(text))
        if not force:
            existing = self._index.get(owner_id, item_id, item_kind)
            if existing is not None and existing.content_hash == content_hash:
                log.debug("Skipping %s: text unchanged", item_id)
                return False

        vector = self._provider.embed(text)
        self._index.upsert(owner_id, item_id, item_kind, vector, content_hash=content_hash)
        return True

    def remove_item(self, owner_id: str, item_id: str, item_kind: ItemKind) -> bool:
        return self._index.remove(owner_id, item_id, item_kind)
