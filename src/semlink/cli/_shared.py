"""Helpers shared by the semlink CLI commands.

The CLI runs against a local .semlink.db; ``--owner`` stands in for the
authenticated user of a hosted deployment.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console

from semlink.cli.errors import err_config, err_no_api_key, err_no_db
from semlink.config import ConfigError, SemlinkConfig, load_config
from semlink.db.connection import Database
from semlink.db.repository import Repository
from semlink.db.schema import initialize
from semlink.db.vectors import VectorIndex
from semlink.similarity.embeddings import LiteLLMEmbeddingProvider
from semlink.similarity.llm_client import provider_of, validate_api_key
from semlink.similarity.search import SimilaritySearch

console = Console()

DEFAULT_DB = Path(".semlink.db")
DEFAULT_OWNER = "local"

DbOption = Annotated[
    Path,
    typer.Option("--db", help="Path to .semlink.db."),
]
OwnerOption = Annotated[
    str,
    typer.Option("--owner", envvar="SEMLINK_OWNER", help="Owner whose data is read and written."),
]


def fail(message: str) -> NoReturn:
    console.print(message)
    raise typer.Exit(1)


def load_cfg(db: Path) -> SemlinkConfig:
    """Load config from semlink.yaml next to *db*; exit 1 on an invalid file."""
    try:
        return load_config(project_dir=db.parent)
    except ConfigError as exc:
        fail(err_config(str(exc)))


@contextmanager
def open_repo(db: Path) -> Iterator[Repository]:
    """Open *db* (which must exist) and yield a Repository; always closes."""
    if not db.exists():
        fail(err_no_db(str(db)))
    conn = Database(db).connect()
    try:
        initialize(conn)
        yield Repository(conn)
    finally:
        conn.close()


def require_api_key(model: str) -> None:
    try:
        validate_api_key(model)
    except EnvironmentError:
        fail(err_no_api_key(provider_of(model)))


def make_index(repo: Repository, cfg: SemlinkConfig) -> VectorIndex:
    return VectorIndex(repo, cfg.embedding.dimensions)


def make_provider(cfg: SemlinkConfig) -> LiteLLMEmbeddingProvider:
    require_api_key(cfg.embedding.model)
    return LiteLLMEmbeddingProvider(cfg.embedding.model)


def make_search(repo: Repository, cfg: SemlinkConfig) -> SimilaritySearch:
    return SimilaritySearch(make_provider(cfg), make_index(repo, cfg))
