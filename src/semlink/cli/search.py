"""semlink similar / duplicates: semantic search over the owner's items.

Usage:
  semlink similar "transformer attention" --limit 5
  semlink duplicates paper-1 --threshold 0.85
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from semlink.cli._shared import (
    DEFAULT_DB,
    DEFAULT_OWNER,
    DbOption,
    OwnerOption,
    console,
    fail,
    load_cfg,
    make_index,
    make_provider,
    make_search,
    open_repo,
)
from semlink.cli.errors import (
    err_dimension_mismatch,
    err_embedding_unavailable,
    err_item_not_found,
    err_no_text,
    warn_no_results,
)
from semlink.db.models import ItemKind, SimilarityResult
from semlink.db.repository import Repository
from semlink.errors import DimensionMismatch, EmbeddingUnavailable
from semlink.similarity.duplicates import DuplicateDetector
from semlink.similarity.search import SimilaritySearch


def similar_cmd(
    query: Annotated[str, typer.Argument(help="Text to search for.")],
    limit: Annotated[int | None, typer.Option("--limit", "-n", min=1, help="Maximum results.")] = None,
    min_score: Annotated[
        float | None,
        typer.Option("--min-score", min=0.0, max=1.0, help="Minimum cosine similarity."),
    ] = None,
    kind: Annotated[
        list[ItemKind] | None,
        typer.Option("--kind", "-k", help="Restrict to resource and/or note.", case_sensitive=False),
    ] = None,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Find the owner's items most similar to a query."""
    cfg = load_cfg(db)
    with open_repo(db) as repo:
        search = make_search(repo, cfg)
        try:
            results = search.find_similar(
                owner,
                query,
                limit=limit if limit is not None else cfg.similarity.limit,
                min_score=min_score if min_score is not None else cfg.similarity.threshold,
                item_kinds=kind or None,
            )
        except DimensionMismatch as exc:
            fail(err_dimension_mismatch(exc.expected, exc.actual, cfg.embedding.model))
        except EmbeddingUnavailable as exc:
            fail(err_embedding_unavailable(str(exc)))
        except ValueError as exc:
            fail(f"[red]Error:[/] {exc}\n  Use:  --kind resource  or  --kind note")

        if not results:
            console.print(warn_no_results("similar items"))
            return
        console.print(_results_table(repo, results, "Similar items"))


def duplicates_cmd(
    item_id: Annotated[str, typer.Argument(help="Item whose near-duplicates to find.")],
    limit: Annotated[int | None, typer.Option("--limit", "-n", min=1, help="Maximum results.")] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", min=0.0, max=1.0, help="Minimum cosine similarity."),
    ] = None,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """List items that are likely duplicates of ITEM_ID."""
    cfg = load_cfg(db)
    with open_repo(db) as repo:
        item = repo.get_owned_item(owner, item_id)
        if item is None:
            fail(err_item_not_found(item_id))
        if not item.text.strip():
            fail(err_no_text(item_id))

        provider = make_provider(cfg)
        detector = DuplicateDetector(
            SimilaritySearch(provider, make_index(repo, cfg)), cfg.duplicates.overfetch
        )
        results = detector.find_duplicates(
            owner,
            item_id,
            item.text,
            limit=limit if limit is not None else cfg.duplicates.limit,
            threshold=threshold if threshold is not None else cfg.duplicates.threshold,
        )
        if not results:
            console.print(f"[green]✓[/] No duplicates of '{item_id}' found.")
            return
        console.print(_results_table(repo, results, f"Possible duplicates of {item_id}"))


def _results_table(repo: Repository, results: list[SimilarityResult], title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("ID", style="bold")
    table.add_column("Title")
    table.add_column("Score", justify="right")
    for result in results:
        item = repo.get_item(result.item_id)
        table.add_row(
            str(result.rank),
            result.item_kind.value,
            result.item_id,
            item.title if item else "",
            f"{result.score:.3f}",
        )
    return table
