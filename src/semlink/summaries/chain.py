"""Versioned summaries per (resource, summary kind).

Each regeneration either appends a new version whose predecessor is the
group's current head, or overwrites a version's content in place. The
"current" version is tracked by the repository's head pointer, updated in the
same transaction as the append; it is never derived by walking the chain.

Overwriting is destructive: the previous content is not retrievable afterwards.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from semlink.db.models import ItemKind, SummaryKind, SummaryVersion
from semlink.db.repository import Repository
from semlink.errors import ConcurrentRegeneration, NotFound
from semlink.summaries.locks import KeyedLock

log = logging.getLogger(__name__)


@dataclass
class RegenerationResult:
    """Outcome of a regeneration.

    Attributes:
        summary: The new version (preserve) or the mutated version (overwrite).
        original: The untouched version that was regenerated, for comparison.
            Always None after an overwrite.
    """

    summary: SummaryVersion
    original: SummaryVersion | None = None


class SummaryVersionChain:
    """Version-chain bookkeeping for generated summaries.

    Content generation is not done here; callers pass the finished text.

    Args:
        repo: Open Repository (summary versions + head pointers).
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo
        self._locks = KeyedLock()

    def create(
        self, owner_id: str, resource_id: str, kind: SummaryKind, content: str
    ) -> SummaryVersion:
        """Add a version for (resource, kind).

        Starts a chain when the group is empty; otherwise the new version
        becomes the head, chained onto the previous one.

        Raises:
            NotFound: If the resource does not exist or is not owned by *owner_id*.
        """
        if self._repo.get_owned_item(owner_id, resource_id, ItemKind.RESOURCE) is None:
            raise NotFound(f"Resource '{resource_id}' not found.")
        version = self._repo.append_summary_version(
            SummaryVersion(
                id=uuid.uuid4().hex,
                resource_id=resource_id,
                owner_id=owner_id,
                kind=kind,
                content=content,
            )
        )
        log.debug("Created summary %s (%s) for %s", version.id, kind, resource_id)
        return version

    def regenerate(
        self,
        owner_id: str,
        resource_id: str,
        summary_id: str,
        new_content: str,
        preserve_original: bool = True,
    ) -> RegenerationResult:
        """Record regenerated content for *summary_id*.

        preserve_original=True appends a new version chained onto the
        group's current head (which is *summary_id* unless another append
        landed first) and returns it with the original for comparison.
        preserve_original=False overwrites *summary_id*'s content in place;
        nothing of the old content survives.

        Raises:
            NotFound: If *summary_id* does not belong to *resource_id* and *owner_id*.
            ConcurrentRegeneration: If an overwrite of the same summary is in progress.
        """
        original = self._owned_version(owner_id, resource_id, summary_id)

        if preserve_original:
            version = self._repo.append_summary_version(
                SummaryVersion(
                    id=uuid.uuid4().hex,
                    resource_id=resource_id,
                    owner_id=owner_id,
                    kind=original.kind,
                    content=new_content,
                )
            )
            log.debug(
                "Regenerated summary %s as new version %s (predecessor %s)",
                summary_id,
                version.id,
                version.predecessor_id,
            )
            return RegenerationResult(summary=version, original=original)

        key = (resource_id, summary_id)
        with self._locks.hold(key, blocking=False) as acquired:
            if not acquired:
                raise ConcurrentRegeneration(key)
            version = self._repo.overwrite_summary_content(owner_id, summary_id, new_content)
        if version is None:
            raise NotFound(f"Summary '{summary_id}' not found.")
        log.debug("Overwrote summary %s in place", summary_id)
        return RegenerationResult(summary=version, original=None)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, owner_id: str, summary_id: str) -> SummaryVersion:
        version = self._repo.get_summary_version(owner_id, summary_id)
        if version is None:
            raise NotFound(f"Summary '{summary_id}' not found.")
        return version

    def current(self, owner_id: str, resource_id: str, kind: SummaryKind) -> SummaryVersion | None:
        """The latest version for (resource, kind), or None if never summarised."""
        head_id = self._repo.get_summary_head(resource_id, kind)
        if head_id is None:
            return None
        return self._repo.get_summary_version(owner_id, head_id)

    def history(self, owner_id: str, summary_id: str) -> list[SummaryVersion]:
        """Follow predecessor links from *summary_id* back to the root.

        Returns versions newest first; the last element is the root.

        Raises:
            NotFound: If *summary_id* is absent or not owned.
            RuntimeError: If the stored chain loops.
        """
        chain: list[SummaryVersion] = []
        seen: set[str] = set()
        next_id: str | None = summary_id
        while next_id is not None:
            if next_id in seen:
                raise RuntimeError(f"Summary chain through '{next_id}' is cyclic.")
            seen.add(next_id)
            version = self.get(owner_id, next_id)
            chain.append(version)
            next_id = version.predecessor_id
        return chain

    def list_for_resource(
        self, owner_id: str, resource_id: str, kind: SummaryKind | None = None
    ) -> list[SummaryVersion]:
        return self._repo.list_summary_versions(owner_id, resource_id, kind)

    def _owned_version(self, owner_id: str, resource_id: str, summary_id: str) -> SummaryVersion:
        version = self._repo.get_summary_version(owner_id, summary_id)
        if version is None or version.resource_id != resource_id:
            raise NotFound(f"Summary '{summary_id}' not found for resource '{resource_id}'.")
        return version
