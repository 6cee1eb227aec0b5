"""Error kinds raised by the semantic linking engine.

NotFound and InvalidTarget are caller errors and are never retried.
DimensionMismatch signals a provider/config defect and is always surfaced.
EmbeddingUnavailable is swallowed only by advisory callers (duplicate
detection, reference suggestion). ConcurrentRegeneration may be retried
after a backoff.
"""

from __future__ import annotations


class SemlinkError(Exception):
    """Base class for all semlink runtime errors."""


class NotFound(SemlinkError, LookupError):
    """Edge, summary or content item is absent or not owned by the caller."""


class InvalidTarget(SemlinkError, ValueError):
    """Reference target has zero or several arms set, or points at its own source."""


class DimensionMismatch(SemlinkError, ValueError):
    """Vector length differs from the index dimensionality."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Embedding has {actual} dimensions, index expects {expected}."
        )
        self.expected = expected
        self.actual = actual


class EmbeddingUnavailable(SemlinkError):
    """The embedding provider failed to produce a vector."""


class ConcurrentRegeneration(SemlinkError):
    """Another regeneration of the same summary is already in progress."""

    def __init__(self, key: tuple[str, str]) -> None:
        resource_id, summary_id = key
        super().__init__(
            f"Summary '{summary_id}' of resource '{resource_id}' is already being regenerated."
        )
        self.key = key


class SummarizationUnavailable(SemlinkError):
    """The summarization model failed or returned no content."""
