"""Forward-only migration runner for semlink's database schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

# Timestamps use millisecond precision so "most recent first" ordering is stable
# within a single second.
_V1_SQL = """
CREATE TABLE IF NOT EXISTS content_items (
    id          TEXT PRIMARY KEY,
    owner_id    TEXT NOT NULL,
    kind        TEXT NOT NULL CHECK (kind IN ('resource', 'project', 'area', 'note')),
    title       TEXT NOT NULL DEFAULT '',
    text        TEXT NOT NULL DEFAULT '',
    created_at  DATETIME NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);

CREATE INDEX IF NOT EXISTS content_items_owner_idx ON content_items(owner_id, kind);

CREATE TABLE IF NOT EXISTS embedded_items (
    owner_id        TEXT NOT NULL,
    item_id         TEXT NOT NULL,
    item_kind       TEXT NOT NULL CHECK (item_kind IN ('resource', 'note')),
    embedding       BLOB NOT NULL,
    dimensions      INTEGER NOT NULL,
    norm            REAL NOT NULL,
    content_hash    TEXT NOT NULL DEFAULT '',
    updated_at      DATETIME NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    PRIMARY KEY (owner_id, item_id, item_kind)
);

CREATE TABLE IF NOT EXISTS reference_edges (
    id                  TEXT PRIMARY KEY,
    owner_id            TEXT NOT NULL,
    source_resource_id  TEXT NOT NULL REFERENCES content_items(id) ON DELETE CASCADE,
    target_kind         TEXT NOT NULL CHECK (target_kind IN ('resource', 'project', 'area', 'note')),
    target_id           TEXT NOT NULL REFERENCES content_items(id) ON DELETE CASCADE,
    reference_type      TEXT NOT NULL DEFAULT 'MANUAL',
    context             TEXT,
    snippet             TEXT,
    created_at          DATETIME NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    updated_at          DATETIME NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
    CHECK (NOT (target_kind = 'resource' AND target_id = source_resource_id))
);

CREATE INDEX IF NOT EXISTS reference_edges_source_idx ON reference_edges(owner_id, source_resource_id);
CREATE INDEX IF NOT EXISTS reference_edges_target_idx ON reference_edges(owner_id, target_kind, target_id);

CREATE TABLE IF NOT EXISTS summary_versions (
    id              TEXT PRIMARY KEY,
    resource_id     TEXT NOT NULL REFERENCES content_items(id) ON DELETE CASCADE,
    owner_id        TEXT NOT NULL,
    summary_type    TEXT NOT NULL,
    summary_length  TEXT NOT NULL,
    content         TEXT NOT NULL,
    predecessor_id  TEXT REFERENCES summary_versions(id) ON DELETE CASCADE,
    generated_at    DATETIME NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);

CREATE INDEX IF NOT EXISTS summary_versions_resource_idx
    ON summary_versions(resource_id, summary_type, summary_length);

-- Latest-version pointer per (resource, kind); kept in the same transaction
-- as every version write.
CREATE TABLE IF NOT EXISTS summary_heads (
    resource_id     TEXT NOT NULL REFERENCES content_items(id) ON DELETE CASCADE,
    summary_type    TEXT NOT NULL,
    summary_length  TEXT NOT NULL,
    version_id      TEXT NOT NULL REFERENCES summary_versions(id) ON DELETE CASCADE,
    PRIMARY KEY (resource_id, summary_type, summary_length)
);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
