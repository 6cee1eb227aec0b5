"""Typed, directed reference edges from a resource to a resource, project, area or note.

Edges are independent rows: mutations need no cross-edge locking, only a
consistent read of the source's owner at call time. Endpoints are immutable;
only type, context and snippet change after creation.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from semlink.db.models import ItemKind, ReferenceEdge, ReferenceTarget, ReferenceType
from semlink.db.repository import Repository
from semlink.errors import InvalidTarget, NotFound

log = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


@dataclass
class ReferenceStats:
    """Edge counts for an owner, optionally narrowed to one resource."""

    total: int = 0
    incoming: int = 0
    outgoing: int = 0
    by_type: dict[ReferenceType, int] = field(default_factory=dict)


class ReferenceGraph:
    """Create, list, update and delete reference edges for one store.

    Args:
        repo: Open Repository (edges and the content item registry).
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def create(
        self,
        owner_id: str,
        source_resource_id: str,
        target: ReferenceTarget,
        reference_type: ReferenceType = ReferenceType.MANUAL,
        context: str | None = None,
        snippet: str | None = None,
    ) -> ReferenceEdge:
        """Create an edge and return it as stored.

        Raises:
            InvalidTarget: If *target* is not a ReferenceTarget or points at
                the source resource itself.
            NotFound: If the source resource or the target item does not
                exist or is not owned by *owner_id*.
        """
        if not isinstance(target, ReferenceTarget):
            raise InvalidTarget("A reference needs exactly one target.")
        if target.kind == ItemKind.RESOURCE and target.id == source_resource_id:
            raise InvalidTarget("A resource cannot reference itself.")

        if self._repo.get_owned_item(owner_id, source_resource_id, ItemKind.RESOURCE) is None:
            raise NotFound(f"Resource '{source_resource_id}' not found.")
        if self._repo.get_owned_item(owner_id, target.id, target.kind) is None:
            raise NotFound(f"{target.kind.value.capitalize()} '{target.id}' not found.")

        edge = self._repo.add_edge(
            ReferenceEdge(
                id=uuid.uuid4().hex,
                owner_id=owner_id,
                source_resource_id=source_resource_id,
                target=target,
                reference_type=ReferenceType(reference_type),
                context=context,
                snippet=snippet,
            )
        )
        log.debug(
            "Created %s reference %s: %s -> %s %s",
            edge.reference_type.value,
            edge.id,
            source_resource_id,
            target.kind.value,
            target.id,
        )
        return edge

    def get(self, owner_id: str, edge_id: str) -> ReferenceEdge:
        edge = self._repo.get_edge(owner_id, edge_id)
        if edge is None:
            raise NotFound(f"Reference '{edge_id}' not found.")
        return edge

    def list(
        self,
        owner_id: str,
        resource_id: str,
        *,
        include_incoming: bool = True,
        include_outgoing: bool = True,
        type_filter: ReferenceType | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[ReferenceEdge]:
        """Edges touching *resource_id*, most recent first.

        Outgoing edges have the resource as source; incoming edges have it as
        their resource-typed target. With both flags off the result is empty.

        Raises:
            NotFound: If the resource is not owned by *owner_id*.
        """
        if not (include_incoming or include_outgoing):
            return []
        if self._repo.get_owned_item(owner_id, resource_id, ItemKind.RESOURCE) is None:
            raise NotFound(f"Resource '{resource_id}' not found.")
        return self._repo.list_edges(
            owner_id,
            resource_id,
            outgoing=include_outgoing,
            incoming=include_incoming,
            reference_type=type_filter,
            limit=limit,
        )

    def update(
        self,
        owner_id: str,
        edge_id: str,
        *,
        context: str | None = None,
        snippet: str | None = None,
        reference_type: ReferenceType | None = None,
    ) -> ReferenceEdge:
        """Change the given fields (None leaves a field as is).

        Raises:
            NotFound: If the edge is absent or not owned by *owner_id*.
        """
        edge = self._repo.update_edge(
            owner_id,
            edge_id,
            context=context,
            snippet=snippet,
            reference_type=reference_type,
        )
        if edge is None:
            raise NotFound(f"Reference '{edge_id}' not found.")
        log.debug("Updated reference %s", edge_id)
        return edge

    def delete(self, owner_id: str, edge_id: str) -> None:
        """Delete an edge.

        Raises:
            NotFound: If the edge is absent (including already deleted) or not owned.
        """
        if not self._repo.delete_edge(owner_id, edge_id):
            raise NotFound(f"Reference '{edge_id}' not found.")
        log.debug("Deleted reference %s", edge_id)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def stats(self, owner_id: str, resource_id: str | None = None) -> ReferenceStats:
        """Edge totals, per-type counts and (for a resource) in/out split."""
        by_type = self._repo.count_edges_by_type(owner_id, resource_id)
        stats = ReferenceStats(total=sum(by_type.values()), by_type=by_type)
        if resource_id is None:
            stats.outgoing = stats.total
            stats.incoming = sum(
                n for _, n in self._repo.most_referenced_resources(owner_id, limit=-1)
            )
        else:
            stats.outgoing = sum(
                self._repo.count_edges_by_type(owner_id, resource_id, direction="outgoing").values()
            )
            stats.incoming = sum(
                self._repo.count_edges_by_type(owner_id, resource_id, direction="incoming").values()
            )
        return stats

    def most_referenced(self, owner_id: str, limit: int = 10) -> list[tuple[str, int]]:
        """Resources ranked by incoming resource-typed edges."""
        return self._repo.most_referenced_resources(owner_id, limit=limit)
