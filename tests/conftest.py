"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from semlink.db.connection import Database
from semlink.db.models import ContentItem, ItemKind
from semlink.db.repository import Repository
from semlink.db.schema import initialize
from semlink.db.vectors import VectorIndex
from semlink.errors import EmbeddingUnavailable


class StubEmbeddingProvider:
    """Deterministic EmbeddingProvider: looks texts up in a dict."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = dict(vectors or {})
        self.calls: list[str] = []
        self.fail = False

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingUnavailable("provider down")
        if text not in self.vectors:
            raise EmbeddingUnavailable(f"no vector for {text!r}")
        return self.vectors[text]


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".semlink.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db) -> Repository:
    return Repository(tmp_db)


@pytest.fixture
def index(repo) -> VectorIndex:
    """Three-dimensional index; test vectors are written out by hand."""
    return VectorIndex(repo, 3)


@pytest.fixture
def provider() -> StubEmbeddingProvider:
    return StubEmbeddingProvider()


@pytest.fixture
def make_item(repo):
    """Register content items for the tests; returns the stored ContentItem."""

    def _make(
        item_id: str,
        kind: ItemKind = ItemKind.RESOURCE,
        owner_id: str = "alice",
        text: str = "",
    ) -> ContentItem:
        item = ContentItem(
            id=item_id, owner_id=owner_id, kind=kind, title=item_id.upper(), text=text
        )
        repo.add_item(item)
        return item

    return _make


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_db(tmp_path, monkeypatch) -> Path:
    """Initialized .semlink.db for CLI tests, with an isolated environment.

    Global config lives under tmp_path, the index is three-dimensional and a
    dummy OpenAI key is set so provider checks pass.
    """
    monkeypatch.setattr("semlink.config._GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")
    monkeypatch.setattr("semlink.cli.main.configure_logging", lambda: None)
    for var in ("SEMLINK_EMBEDDING_MODEL", "SEMLINK_SUMMARY_MODEL", "SEMLINK_OWNER"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SEMLINK_EMBEDDING_DIMENSIONS", "3")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    db_path = tmp_path / ".semlink.db"
    with Database(db_path) as conn:
        initialize(conn)
    return db_path


@pytest.fixture
def litellm_vectors():
    """Patch litellm.embedding to answer from a text -> vector dict.

    Unknown texts get ``[0, 0, 1]``.
    """
    vectors: dict[str, list[float]] = {}

    def _embedding(model, input, num_retries=3):
        response = MagicMock()
        response.data = [{"embedding": vectors.get(input[0], [0.0, 0.0, 1.0])}]
        return response

    with patch("semlink.similarity.llm_client.litellm.embedding", side_effect=_embedding):
        yield vectors


@pytest.fixture
def litellm_reply():
    """Patch litellm.completion; set ``.content`` on the returned object to change the reply."""
    response = MagicMock()
    response.choices[0].message.content = "Generated summary."
    with patch("semlink.similarity.llm_client.litellm.completion", return_value=response) as mock_call:
        mock_call.reply = response.choices[0].message
        yield mock_call


@pytest.fixture
def cli_repo(cli_db):
    """Repository on its own connection to cli_db, for seeding and checking."""
    conn = Database(cli_db).connect()
    yield Repository(conn)
    conn.close()
