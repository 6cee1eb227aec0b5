"""semlink add / remove: content item lifecycle.

``add`` registers (or updates) a resource, project, area or note and embeds
resources and notes. New text is checked for near-duplicates right away.
``remove`` deletes the item together with its vector, its reference edges
(either endpoint) and its summary versions.

Usage:
  semlink add paper-1 --title "Attention" --file paper.md
  semlink add proj-x --kind project --title "Project X"
  semlink remove paper-1 --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

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
    open_repo,
)
from semlink.cli.errors import (
    err_dimension_mismatch,
    err_embedding_unavailable,
    err_item_not_found,
)
from semlink.db.models import EMBEDDABLE_KINDS, ContentItem, ItemKind
from semlink.errors import DimensionMismatch, EmbeddingUnavailable
from semlink.similarity.duplicates import DuplicateDetector
from semlink.similarity.embeddings import EmbeddingWriter
from semlink.similarity.search import SimilaritySearch


def add_cmd(
    item_id: Annotated[str, typer.Argument(help="Item ID (unique within the database).")],
    kind: Annotated[
        ItemKind,
        typer.Option("--kind", "-k", help="Item kind.", case_sensitive=False),
    ] = ItemKind.RESOURCE,
    title: Annotated[str, typer.Option("--title", help="Display title.")] = "",
    text: Annotated[str | None, typer.Option("--text", help="Item text.")] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Read item text from a file.", exists=True, dir_okay=False),
    ] = None,
    no_embed: Annotated[
        bool,
        typer.Option("--no-embed", help="Register the item without embedding it."),
    ] = False,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Add a content item, or update an existing item's text, and embed it."""
    if file is not None:
        text = file.read_text(encoding="utf-8")

    cfg = load_cfg(db)
    with open_repo(db) as repo:
        existing = repo.get_item(item_id)
        if existing is not None and (existing.owner_id != owner or existing.kind != kind):
            fail(
                f"[red]Error:[/] ID '{item_id}' is already used by another item.\n"
                "  Choose a different ID, or run:  semlink remove " + item_id
            )

        if existing is None:
            repo.add_item(
                ContentItem(id=item_id, owner_id=owner, kind=kind, title=title, text=text or "")
            )
            console.print(f"[green]✓[/] Added {kind.value}: [bold]{item_id}[/]")
        elif text is not None:
            repo.update_item_text(item_id, text)
            console.print(f"[green]✓[/] Updated {kind.value}: [bold]{item_id}[/]")
        else:
            text = existing.text
            console.print(f"[dim]{kind.value.capitalize()} '{item_id}' unchanged.[/]")

        if kind not in EMBEDDABLE_KINDS:
            return
        if not (text or "").strip():
            # The stored vector describes text the item no longer has.
            if make_index(repo, cfg).remove(owner, item_id, kind):
                console.print("  [dim]Text cleared; embedding removed.[/]")
            return
        if no_embed:
            return

        index = make_index(repo, cfg)
        provider = make_provider(cfg)
        writer = EmbeddingWriter(provider, index)
        try:
            written = writer.index_item(owner, item_id, kind, text or "")
        except DimensionMismatch as exc:
            fail(err_dimension_mismatch(exc.expected, exc.actual, cfg.embedding.model))
        except EmbeddingUnavailable as exc:
            fail(err_embedding_unavailable(str(exc)))

        if not written:
            console.print("  [dim]Embedding up to date.[/]")
            return
        console.print(f"  [green]✓[/] Embedded with {cfg.embedding.model}")

        detector = DuplicateDetector(SimilaritySearch(provider, index), cfg.duplicates.overfetch)
        duplicates = detector.find_duplicates(
            owner,
            item_id,
            text or "",
            limit=cfg.duplicates.limit,
            threshold=cfg.duplicates.threshold,
        )
        if duplicates:
            console.print("\n[yellow]⚠[/] Possible duplicates:")
            for dup in duplicates:
                console.print(f"    {dup.item_kind.value} {dup.item_id}  (score {dup.score:.2f})")


def remove_cmd(
    item_id: Annotated[str, typer.Argument(help="Item ID to remove.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Remove an item with its vector, references and summaries."""
    with open_repo(db) as repo:
        item = repo.get_owned_item(owner, item_id)
        if item is None:
            fail(err_item_not_found(item_id))

        edge_count = 0
        summary_count = 0
        if item.kind == ItemKind.RESOURCE:
            edge_count = sum(repo.count_edges_by_type(owner, item_id).values())
            summary_count = len(repo.list_summary_versions(owner, item_id))

        console.print(f"\nRemove {item.kind.value}: [bold]{item_id}[/] {item.title}")
        if item.kind == ItemKind.RESOURCE:
            console.print(f"  References: {edge_count}  |  Summary versions: {summary_count}")

        if not yes:
            if not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        repo.delete_item(item_id)
        console.print(f"\n[green]✓[/] Removed: {item_id}")
