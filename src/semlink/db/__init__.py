"""semlink database layer."""

from semlink.db.connection import Database
from semlink.db.migrations import MIGRATIONS, run_migrations
from semlink.db.repository import Repository
from semlink.db.schema import initialize
from semlink.db.vectors import VectorIndex, vector_norm

__all__ = [
    "Database",
    "Repository",
    "VectorIndex",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "vector_norm",
]
