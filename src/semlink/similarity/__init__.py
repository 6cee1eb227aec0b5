"""Embeddings, similarity search and duplicate detection."""

from semlink.similarity.duplicates import DuplicateDetector
from semlink.similarity.embeddings import (
    EmbeddingProvider,
    EmbeddingWriter,
    LiteLLMEmbeddingProvider,
    hash_text,
)
from semlink.similarity.search import SimilaritySearch

__all__ = [
    "DuplicateDetector",
    "EmbeddingProvider",
    "EmbeddingWriter",
    "LiteLLMEmbeddingProvider",
    "SimilaritySearch",
    "hash_text",
]
