"""Repository pattern for all semlink database operations.

Single interface for: content items, embedded vectors, reference edges,
summary versions and the per-(resource, kind) latest-version pointer.
Every method takes the repository lock, so one connection can be shared by
request threads; multi-statement writes run in a single transaction.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from semlink.db.models import (
    ContentItem,
    EmbeddedItem,
    ItemKind,
    ReferenceEdge,
    ReferenceTarget,
    ReferenceType,
    SummaryKind,
    SummaryLength,
    SummaryType,
    SummaryVersion,
)

_EDGE_COLUMNS = (
    "id, owner_id, source_resource_id, target_kind, target_id, reference_type, "
    "context, snippet, created_at, updated_at"
)
_SUMMARY_COLUMNS = (
    "id, resource_id, owner_id, summary_type, summary_length, content, "
    "predecessor_id, generated_at"
)
_NOW = "strftime('%Y-%m-%d %H:%M:%f', 'now')"


class Repository:
    """Data access layer for all semlink database entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see semlink.db.schema.initialize).
        """
        self._conn = conn
        self._lock = threading.RLock()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the lock for a unit of work; commit on success, roll back on error."""
        with self._lock:
            try:
                yield self._conn
            except BaseException:
                self._conn.rollback()
                raise
            self._conn.commit()

    # ------------------------------------------------------------------
    # Content items
    # ------------------------------------------------------------------

    def add_item(self, item: ContentItem) -> None:
        """Insert a new content item record."""
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO content_items (id, owner_id, kind, title, text) VALUES (?, ?, ?, ?, ?)",
                (item.id, item.owner_id, ItemKind(item.kind).value, item.title, item.text),
            )

    def update_item_text(self, item_id: str, text: str) -> None:
        with self._transaction() as conn:
            conn.execute("UPDATE content_items SET text = ? WHERE id = ?", (text, item_id))

    def get_item(self, item_id: str) -> ContentItem | None:
        """Return a content item by ID, or None if not found."""
        with self._lock:
            row = self._conn.execute(
                "SELECT id, owner_id, kind, title, text, created_at FROM content_items WHERE id = ?",
                (item_id,),
            ).fetchone()
        return _row_to_item(row) if row else None

    def get_owned_item(
        self, owner_id: str, item_id: str, kind: ItemKind | None = None
    ) -> ContentItem | None:
        """Return the item only if it exists, belongs to *owner_id* and matches *kind*."""
        item = self.get_item(item_id)
        if item is None or item.owner_id != owner_id:
            return None
        if kind is not None and item.kind != kind:
            return None
        return item

    def list_items(self, owner_id: str, kind: ItemKind | None = None) -> list[ContentItem]:
        """Return the owner's items ordered by creation time (oldest first)."""
        sql = "SELECT id, owner_id, kind, title, text, created_at FROM content_items WHERE owner_id = ?"
        params: list = [owner_id]
        if kind is not None:
            sql += " AND kind = ?"
            params.append(ItemKind(kind).value)
        sql += " ORDER BY created_at, rowid"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_item(r) for r in rows]

    def delete_item(self, item_id: str) -> None:
        """Delete an item plus its vector; edges and summaries cascade via foreign keys."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM embedded_items WHERE item_id = ?", (item_id,))
            conn.execute("DELETE FROM content_items WHERE id = ?", (item_id,))

    # ------------------------------------------------------------------
    # Embedded vectors
    # ------------------------------------------------------------------

    def upsert_embedding(
        self,
        owner_id: str,
        item_id: str,
        item_kind: ItemKind,
        embedding: bytes,
        dimensions: int,
        norm: float,
        content_hash: str,
    ) -> None:
        """Insert or replace the vector for (owner, item, kind) in one statement."""
        with self._transaction() as conn:
            conn.execute(
                f"""
                INSERT INTO embedded_items
                    (owner_id, item_id, item_kind, embedding, dimensions, norm, content_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(owner_id, item_id, item_kind) DO UPDATE SET
                    embedding = excluded.embedding,
                    dimensions = excluded.dimensions,
                    norm = excluded.norm,
                    content_hash = excluded.content_hash,
                    updated_at = {_NOW}
                """,
                (owner_id, item_id, ItemKind(item_kind).value, embedding, dimensions, norm, content_hash),
            )

    def delete_embedding(self, owner_id: str, item_id: str, item_kind: ItemKind) -> bool:
        """Delete one vector. Returns True if a row was removed."""
        with self._transaction() as conn:
            cur = conn.execute(
                "DELETE FROM embedded_items WHERE owner_id = ? AND item_id = ? AND item_kind = ?",
                (owner_id, item_id, ItemKind(item_kind).value),
            )
        return cur.rowcount > 0

    def get_embedding(
        self, owner_id: str, item_id: str, item_kind: ItemKind
    ) -> EmbeddedItem | None:
        with self._lock:
            row = self._conn.execute(
                """
                SELECT owner_id, item_id, item_kind, vec_to_json(embedding) AS vector,
                       content_hash, updated_at
                FROM embedded_items
                WHERE owner_id = ? AND item_id = ? AND item_kind = ?
                """,
                (owner_id, item_id, ItemKind(item_kind).value),
            ).fetchone()
        if row is None:
            return None
        return EmbeddedItem(
            owner_id=row["owner_id"],
            item_id=row["item_id"],
            item_kind=ItemKind(row["item_kind"]),
            vector=json.loads(row["vector"]),
            content_hash=row["content_hash"],
            updated_at=row["updated_at"],
        )

    def search_embeddings(
        self,
        owner_id: str,
        query: bytes,
        dimensions: int,
        *,
        zero_query: bool,
        min_score: float,
        limit: int,
        item_kinds: list[ItemKind] | None = None,
    ) -> list[sqlite3.Row]:
        """Exact cosine scan over *owner_id*'s vectors, best-first.

        Zero-magnitude vectors on either side score 0. Scores are clamped to
        [0, 1]. Ties are broken by most recent ``updated_at``.
        """
        if zero_query:
            score_sql = "0.0"
            params: list = []
        else:
            score_sql = (
                "CASE WHEN norm = 0 THEN 0.0 "
                "ELSE MIN(1.0, MAX(0.0, 1.0 - vec_distance_cosine(embedding, ?))) END"
            )
            params = [query]

        where = "owner_id = ? AND dimensions = ?"
        params += [owner_id, dimensions]
        if item_kinds:
            where += f" AND item_kind IN ({','.join('?' * len(item_kinds))})"
            params += [ItemKind(k).value for k in item_kinds]
        params += [min_score, limit]

        sql = f"""
            SELECT item_id, item_kind, owner_id, updated_at, score FROM (
                SELECT item_id, item_kind, owner_id, updated_at, rowid AS rid,
                       {score_sql} AS score
                FROM embedded_items WHERE {where}
            )
            WHERE score >= ?
            ORDER BY score DESC, updated_at DESC, rid DESC
            LIMIT ?
        """  # noqa: S608
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def count_embeddings(self, owner_id: str | None = None) -> int:
        sql = "SELECT COUNT(*) FROM embedded_items"
        params: tuple = ()
        if owner_id is not None:
            sql += " WHERE owner_id = ?"
            params = (owner_id,)
        with self._lock:
            return self._conn.execute(sql, params).fetchone()[0]

    # ------------------------------------------------------------------
    # Reference edges
    # ------------------------------------------------------------------

    def add_edge(self, edge: ReferenceEdge) -> ReferenceEdge:
        """Insert an edge and return it as stored (timestamps filled in)."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO reference_edges
                    (id, owner_id, source_resource_id, target_kind, target_id,
                     reference_type, context, snippet)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    edge.id,
                    edge.owner_id,
                    edge.source_resource_id,
                    edge.target.kind.value,
                    edge.target.id,
                    ReferenceType(edge.reference_type).value,
                    edge.context,
                    edge.snippet,
                ),
            )
            row = conn.execute(
                f"SELECT {_EDGE_COLUMNS} FROM reference_edges WHERE id = ?", (edge.id,)
            ).fetchone()
        return _row_to_edge(row)

    def get_edge(self, owner_id: str, edge_id: str) -> ReferenceEdge | None:
        """Return the edge if it exists and belongs to *owner_id*."""
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_EDGE_COLUMNS} FROM reference_edges WHERE id = ? AND owner_id = ?",
                (edge_id, owner_id),
            ).fetchone()
        return _row_to_edge(row) if row else None

    def list_edges(
        self,
        owner_id: str,
        resource_id: str,
        *,
        outgoing: bool,
        incoming: bool,
        reference_type: ReferenceType | None = None,
        limit: int = 50,
    ) -> list[ReferenceEdge]:
        """Edges touching *resource_id*, most recent first.

        Outgoing: the resource is the source. Incoming: the resource is the
        resource-typed target.
        """
        clauses: list[str] = []
        params: list = [owner_id]
        if outgoing:
            clauses.append("source_resource_id = ?")
            params.append(resource_id)
        if incoming:
            clauses.append("(target_kind = 'resource' AND target_id = ?)")
            params.append(resource_id)
        if not clauses:
            return []

        sql = f"SELECT {_EDGE_COLUMNS} FROM reference_edges WHERE owner_id = ? AND ({' OR '.join(clauses)})"
        if reference_type is not None:
            sql += " AND reference_type = ?"
            params.append(ReferenceType(reference_type).value)
        sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_edge(r) for r in rows]

    def outgoing_targets(self, owner_id: str, resource_id: str) -> set[ReferenceTarget]:
        """All targets already linked from *resource_id*, regardless of edge type."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT target_kind, target_id FROM reference_edges WHERE owner_id = ? AND source_resource_id = ?",
                (owner_id, resource_id),
            ).fetchall()
        return {ReferenceTarget(ItemKind(r["target_kind"]), r["target_id"]) for r in rows}

    def update_edge(
        self,
        owner_id: str,
        edge_id: str,
        *,
        context: str | None = None,
        snippet: str | None = None,
        reference_type: ReferenceType | None = None,
    ) -> ReferenceEdge | None:
        """Change only the given mutable fields. Returns None if the edge is not owned."""
        sets: list[str] = []
        params: list = []
        if context is not None:
            sets.append("context = ?")
            params.append(context)
        if snippet is not None:
            sets.append("snippet = ?")
            params.append(snippet)
        if reference_type is not None:
            sets.append("reference_type = ?")
            params.append(ReferenceType(reference_type).value)
        sets.append(f"updated_at = {_NOW}")

        with self._transaction() as conn:
            cur = conn.execute(
                f"UPDATE reference_edges SET {', '.join(sets)} WHERE id = ? AND owner_id = ?",
                (*params, edge_id, owner_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {_EDGE_COLUMNS} FROM reference_edges WHERE id = ?", (edge_id,)
            ).fetchone()
        return _row_to_edge(row)

    def delete_edge(self, owner_id: str, edge_id: str) -> bool:
        """Delete an owned edge. Returns True if a row was removed."""
        with self._transaction() as conn:
            cur = conn.execute(
                "DELETE FROM reference_edges WHERE id = ? AND owner_id = ?", (edge_id, owner_id)
            )
        return cur.rowcount > 0

    def count_edges_by_type(
        self, owner_id: str, resource_id: str | None = None, *, direction: str = "any"
    ) -> dict[ReferenceType, int]:
        """Edge counts per reference type.

        *direction* is ``"any"``, ``"outgoing"`` or ``"incoming"`` relative to
        *resource_id*; it is ignored when *resource_id* is None.
        """
        sql = "SELECT reference_type, COUNT(*) AS n FROM reference_edges WHERE owner_id = ?"
        params: list = [owner_id]
        if resource_id is not None:
            if direction == "outgoing":
                sql += " AND source_resource_id = ?"
                params.append(resource_id)
            elif direction == "incoming":
                sql += " AND target_kind = 'resource' AND target_id = ?"
                params.append(resource_id)
            else:
                sql += " AND (source_resource_id = ? OR (target_kind = 'resource' AND target_id = ?))"
                params += [resource_id, resource_id]
        sql += " GROUP BY reference_type"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return {ReferenceType(r["reference_type"]): r["n"] for r in rows}

    def most_referenced_resources(self, owner_id: str, limit: int = 10) -> list[tuple[str, int]]:
        """Return [(resource_id, incoming_count), ...] ordered by count desc."""
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT target_id, COUNT(*) AS n FROM reference_edges
                WHERE owner_id = ? AND target_kind = 'resource'
                GROUP BY target_id
                ORDER BY n DESC, target_id
                LIMIT ?
                """,
                (owner_id, limit),
            ).fetchall()
        return [(r["target_id"], r["n"]) for r in rows]

    # ------------------------------------------------------------------
    # Summary versions
    # ------------------------------------------------------------------

    def append_summary_version(self, version: SummaryVersion) -> SummaryVersion:
        """Insert *version* as the new head of its (resource, kind) group.

        The predecessor is read from the head pointer inside the same
        transaction, so concurrent appends form a chain rather than siblings.
        Any ``predecessor_id`` already set on *version* is ignored.
        """
        kind = version.kind
        with self._transaction() as conn:
            head = conn.execute(
                """
                SELECT version_id FROM summary_heads
                WHERE resource_id = ? AND summary_type = ? AND summary_length = ?
                """,
                (version.resource_id, kind.type.value, kind.length.value),
            ).fetchone()
            predecessor_id = head["version_id"] if head else None
            conn.execute(
                """
                INSERT INTO summary_versions
                    (id, resource_id, owner_id, summary_type, summary_length, content, predecessor_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    version.id,
                    version.resource_id,
                    version.owner_id,
                    kind.type.value,
                    kind.length.value,
                    version.content,
                    predecessor_id,
                ),
            )
            conn.execute(
                """
                INSERT INTO summary_heads (resource_id, summary_type, summary_length, version_id)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(resource_id, summary_type, summary_length)
                DO UPDATE SET version_id = excluded.version_id
                """,
                (version.resource_id, kind.type.value, kind.length.value, version.id),
            )
            row = conn.execute(
                f"SELECT {_SUMMARY_COLUMNS} FROM summary_versions WHERE id = ?", (version.id,)
            ).fetchone()
        return _row_to_summary(row)

    def overwrite_summary_content(
        self, owner_id: str, summary_id: str, content: str
    ) -> SummaryVersion | None:
        """Replace a version's content in place; the chain is untouched."""
        with self._transaction() as conn:
            cur = conn.execute(
                f"UPDATE summary_versions SET content = ?, generated_at = {_NOW} WHERE id = ? AND owner_id = ?",
                (content, summary_id, owner_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {_SUMMARY_COLUMNS} FROM summary_versions WHERE id = ?", (summary_id,)
            ).fetchone()
        return _row_to_summary(row)

    def get_summary_version(self, owner_id: str, summary_id: str) -> SummaryVersion | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_SUMMARY_COLUMNS} FROM summary_versions WHERE id = ? AND owner_id = ?",
                (summary_id, owner_id),
            ).fetchone()
        return _row_to_summary(row) if row else None

    def get_summary_head(self, resource_id: str, kind: SummaryKind) -> str | None:
        """Return the id of the latest version for (resource, kind), or None."""
        with self._lock:
            row = self._conn.execute(
                """
                SELECT version_id FROM summary_heads
                WHERE resource_id = ? AND summary_type = ? AND summary_length = ?
                """,
                (resource_id, kind.type.value, kind.length.value),
            ).fetchone()
        return row["version_id"] if row else None

    def list_summary_versions(
        self, owner_id: str, resource_id: str, kind: SummaryKind | None = None
    ) -> list[SummaryVersion]:
        """Return versions for a resource ordered by generation time desc."""
        sql = f"SELECT {_SUMMARY_COLUMNS} FROM summary_versions WHERE owner_id = ? AND resource_id = ?"
        params: list = [owner_id, resource_id]
        if kind is not None:
            sql += " AND summary_type = ? AND summary_length = ?"
            params += [kind.type.value, kind.length.value]
        sql += " ORDER BY generated_at DESC, rowid DESC"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_summary(r) for r in rows]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_item(row: sqlite3.Row) -> ContentItem:
    return ContentItem(
        id=row["id"],
        owner_id=row["owner_id"],
        kind=ItemKind(row["kind"]),
        title=row["title"],
        text=row["text"],
        created_at=row["created_at"],
    )


def _row_to_edge(row: sqlite3.Row) -> ReferenceEdge:
    return ReferenceEdge(
        id=row["id"],
        owner_id=row["owner_id"],
        source_resource_id=row["source_resource_id"],
        target=ReferenceTarget(ItemKind(row["target_kind"]), row["target_id"]),
        reference_type=ReferenceType(row["reference_type"]),
        context=row["context"],
        snippet=row["snippet"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_summary(row: sqlite3.Row) -> SummaryVersion:
    return SummaryVersion(
        id=row["id"],
        resource_id=row["resource_id"],
        owner_id=row["owner_id"],
        kind=SummaryKind(SummaryType(row["summary_type"]), SummaryLength(row["summary_length"])),
        content=row["content"],
        predecessor_id=row["predecessor_id"],
        generated_at=row["generated_at"],
    )
