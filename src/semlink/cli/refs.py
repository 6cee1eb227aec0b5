"""semlink refs CLI commands.

Commands:
  semlink refs list <resource>               edges touching a resource
  semlink refs add <resource> --note <id>    create an edge (exactly one target)
  semlink refs update <edge> --context ...   change type/context/snippet
  semlink refs delete <edge>                 delete an edge
  semlink refs suggest <resource> [--accept] propose AI_SUGGESTED edges
  semlink refs stats [<resource>]            counts per type, most referenced
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
    make_search,
    open_repo,
)
from semlink.cli.errors import (
    err_invalid_target,
    err_item_not_found,
    err_no_text,
    err_reference_not_found,
    warn_no_results,
)
from semlink.db.models import ItemKind, ReferenceEdge, ReferenceTarget, ReferenceType
from semlink.errors import InvalidTarget, NotFound
from semlink.graph.references import ReferenceGraph
from semlink.graph.suggester import ReferenceSuggester

refs_app = typer.Typer(
    name="refs",
    help="Manage reference edges between resources, projects, areas and notes.",
    add_completion=False,
)


@refs_app.command("list")
def refs_list_cmd(
    resource_id: Annotated[str, typer.Argument(help="Resource ID.")],
    incoming: Annotated[
        bool, typer.Option("--incoming/--no-incoming", help="Include edges pointing at the resource.")
    ] = True,
    outgoing: Annotated[
        bool, typer.Option("--outgoing/--no-outgoing", help="Include edges from the resource.")
    ] = True,
    ref_type: Annotated[
        ReferenceType | None,
        typer.Option("--type", "-t", help="Only this reference type.", case_sensitive=False),
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", min=1)] = 50,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """List references of a resource, most recent first."""
    with open_repo(db) as repo:
        graph = ReferenceGraph(repo)
        try:
            edges = graph.list(
                owner,
                resource_id,
                include_incoming=incoming,
                include_outgoing=outgoing,
                type_filter=ref_type,
                limit=limit,
            )
        except NotFound:
            fail(err_item_not_found(resource_id, "resource"))

    if not edges:
        console.print(f"[yellow]No references for '{resource_id}'.[/]")
        return

    table = Table(title=f"References of {resource_id}", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Dir")
    table.add_column("Type")
    table.add_column("Other end", style="bold")
    table.add_column("Context")
    for edge in edges:
        if edge.source_resource_id == resource_id:
            direction, other = "→", f"{edge.target.kind.value} {edge.target.id}"
        else:
            direction, other = "←", f"resource {edge.source_resource_id}"
        table.add_row(edge.id, direction, edge.reference_type.value, other, edge.context or "")
    console.print(table)


@refs_app.command("add")
def refs_add_cmd(
    source: Annotated[str, typer.Argument(help="Source resource ID.")],
    resource: Annotated[str | None, typer.Option("--resource", help="Target resource ID.")] = None,
    project: Annotated[str | None, typer.Option("--project", help="Target project ID.")] = None,
    area: Annotated[str | None, typer.Option("--area", help="Target area ID.")] = None,
    note: Annotated[str | None, typer.Option("--note", help="Target note ID.")] = None,
    ref_type: Annotated[
        ReferenceType,
        typer.Option("--type", "-t", help="Reference type.", case_sensitive=False),
    ] = ReferenceType.MANUAL,
    context: Annotated[str | None, typer.Option("--context", help="Why the two are linked.")] = None,
    snippet: Annotated[str | None, typer.Option("--snippet", help="Quoted excerpt.")] = None,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Create a reference from SOURCE to exactly one target."""
    try:
        target = ReferenceTarget.from_fields(
            referenced_resource_id=resource, project_id=project, area_id=area, note_id=note
        )
    except InvalidTarget as exc:
        fail(err_invalid_target(str(exc)))

    with open_repo(db) as repo:
        try:
            edge = ReferenceGraph(repo).create(
                owner, source, target, reference_type=ref_type, context=context, snippet=snippet
            )
        except InvalidTarget as exc:
            fail(err_invalid_target(str(exc)))
        except NotFound as exc:
            fail(f"[red]Error:[/] {exc}\n  Run:  semlink add <id> --kind <kind>  to register it first.")

    console.print(_describe(edge, "Created"))


@refs_app.command("update")
def refs_update_cmd(
    edge_id: Annotated[str, typer.Argument(help="Reference ID.")],
    ref_type: Annotated[
        ReferenceType | None,
        typer.Option("--type", "-t", help="New reference type.", case_sensitive=False),
    ] = None,
    context: Annotated[str | None, typer.Option("--context", help="New context.")] = None,
    snippet: Annotated[str | None, typer.Option("--snippet", help="New snippet.")] = None,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Change a reference's type, context or snippet."""
    with open_repo(db) as repo:
        try:
            edge = ReferenceGraph(repo).update(
                owner, edge_id, context=context, snippet=snippet, reference_type=ref_type
            )
        except NotFound:
            fail(err_reference_not_found(edge_id))
    console.print(_describe(edge, "Updated"))


@refs_app.command("delete")
def refs_delete_cmd(
    edge_id: Annotated[str, typer.Argument(help="Reference ID.")],
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Delete a reference."""
    with open_repo(db) as repo:
        try:
            ReferenceGraph(repo).delete(owner, edge_id)
        except NotFound:
            fail(err_reference_not_found(edge_id))
    console.print(f"[green]✓[/] Deleted reference {edge_id}")


@refs_app.command("suggest")
def refs_suggest_cmd(
    resource_id: Annotated[str, typer.Argument(help="Resource ID.")],
    limit: Annotated[int | None, typer.Option("--limit", "-n", min=1)] = None,
    min_score: Annotated[float | None, typer.Option("--min-score", min=0.0, max=1.0)] = None,
    accept: Annotated[
        bool,
        typer.Option("--accept", help="Create an AI_SUGGESTED reference for every suggestion."),
    ] = False,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Suggest references for a resource from content similarity."""
    cfg = load_cfg(db)
    with open_repo(db) as repo:
        item = repo.get_owned_item(owner, resource_id, ItemKind.RESOURCE)
        if item is None:
            fail(err_item_not_found(resource_id, "resource"))
        if not item.text.strip():
            fail(err_no_text(resource_id))

        suggester = ReferenceSuggester(make_search(repo, cfg), repo)
        suggestions = suggester.suggest(
            owner,
            resource_id,
            item.text,
            limit=limit if limit is not None else cfg.suggestions.limit,
            min_score=min_score if min_score is not None else cfg.suggestions.threshold,
        )
        if not suggestions:
            console.print(warn_no_results("reference suggestions"))
            return

        table = Table(title=f"Suggested references for {resource_id}", header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Target", style="bold")
        table.add_column("Score", justify="right")
        for s in suggestions:
            table.add_row(str(s.rank), f"{s.target.kind.value} {s.target.id}", f"{s.score:.3f}")
        console.print(table)

        if not accept:
            console.print("\n  Run with --accept to create these references.")
            return

        graph = ReferenceGraph(repo)
        for s in suggestions:
            graph.create(
                owner, resource_id, s.target, reference_type=s.reference_type, context=s.context
            )
        console.print(f"\n[green]✓[/] Created {len(suggestions)} reference(s)")


@refs_app.command("stats")
def refs_stats_cmd(
    resource_id: Annotated[
        str | None, typer.Argument(help="Resource ID (omit for all of the owner's edges).")
    ] = None,
    top: Annotated[int, typer.Option("--top", min=1, help="Most referenced resources to show.")] = 10,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Show reference counts per type and the most referenced resources."""
    with open_repo(db) as repo:
        if (
            resource_id is not None
            and repo.get_owned_item(owner, resource_id, ItemKind.RESOURCE) is None
        ):
            fail(err_item_not_found(resource_id, "resource"))
        graph = ReferenceGraph(repo)
        stats = graph.stats(owner, resource_id)
        top_resources = graph.most_referenced(owner, limit=top) if resource_id is None else []

    console.print(
        f"References: [bold]{stats.total}[/]  |  "
        f"Outgoing: {stats.outgoing}  |  Incoming: {stats.incoming}"
    )
    for ref_type, n in sorted(stats.by_type.items(), key=lambda kv: (-kv[1], kv[0].value)):
        console.print(f"  {ref_type.value:<16} {n}")

    if top_resources:
        table = Table(title="Most referenced", header_style="bold")
        table.add_column("Resource", style="bold")
        table.add_column("Incoming", justify="right")
        for rid, n in top_resources:
            table.add_row(rid, str(n))
        console.print(table)


def _describe(edge: ReferenceEdge, verb: str) -> str:
    return (
        f"[green]✓[/] {verb} {edge.reference_type.value} reference [bold]{edge.id}[/]\n"
        f"  {edge.source_resource_id} → {edge.target.kind.value} {edge.target.id}"
    )
