"""semlink summaries CLI commands.

Commands:
  semlink summaries create <resource>              summarize (new version if one exists)
  semlink summaries regenerate <resource> <id>     regenerate a version
  semlink summaries history <id>                   versions back to the first one
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from semlink.cli._shared import (
    DEFAULT_DB,
    DEFAULT_OWNER,
    DbOption,
    OwnerOption,
    console,
    fail,
    load_cfg,
    open_repo,
    require_api_key,
)
from semlink.cli.errors import (
    err_concurrent_regeneration,
    err_item_not_found,
    err_no_text,
    err_summarization_unavailable,
    err_summary_not_found,
)
from semlink.db.models import ItemKind, SummaryKind, SummaryLength, SummaryType, SummaryVersion
from semlink.errors import ConcurrentRegeneration, NotFound, SummarizationUnavailable
from semlink.summaries.chain import SummaryVersionChain
from semlink.summaries.summarizer import ResourceSummarizer, SummaryOptions, summarize_resource

summaries_app = typer.Typer(
    name="summaries",
    help="Generate and version resource summaries.",
    add_completion=False,
)

PromptOption = Annotated[
    str | None, typer.Option("--prompt", help="Custom instructions replacing the built-in ones.")
]
ToneOption = Annotated[str | None, typer.Option("--tone", help="Tone, e.g. formal.")]
AudienceOption = Annotated[str | None, typer.Option("--audience", help="Target audience.")]
FocusOption = Annotated[
    list[str] | None, typer.Option("--focus", help="Focus area (repeatable).")
]


@summaries_app.command("create")
def summaries_create_cmd(
    resource_id: Annotated[str, typer.Argument(help="Resource ID.")],
    summary_type: Annotated[
        SummaryType | None,
        typer.Option("--type", "-t", help="Summary type.", case_sensitive=False),
    ] = None,
    length: Annotated[
        SummaryLength | None,
        typer.Option("--length", "-l", help="Summary length.", case_sensitive=False),
    ] = None,
    prompt: PromptOption = None,
    tone: ToneOption = None,
    audience: AudienceOption = None,
    focus: FocusOption = None,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Summarize a resource; an existing summary of the same kind gets a new version."""
    cfg = load_cfg(db)
    options = SummaryOptions(
        kind=SummaryKind(summary_type or cfg.summaries.type, length or cfg.summaries.length),
        custom_prompt=prompt,
        tone=tone,
        audience=audience,
        focus=list(focus or []),
    )
    with open_repo(db) as repo:
        item = repo.get_owned_item(owner, resource_id, ItemKind.RESOURCE)
        if item is None:
            fail(err_item_not_found(resource_id, "resource"))
        if not item.text.strip():
            fail(err_no_text(resource_id))

        require_api_key(cfg.summaries.model)
        chain = SummaryVersionChain(repo)
        try:
            result = summarize_resource(
                chain,
                ResourceSummarizer(cfg.summaries.model),
                owner,
                resource_id,
                item.text,
                options,
            )
        except SummarizationUnavailable as exc:
            fail(err_summarization_unavailable(str(exc)))

    _show_version(result.summary)
    if result.original is not None:
        console.print(f"  [dim]Previous version: {result.original.id}[/]")


@summaries_app.command("regenerate")
def summaries_regenerate_cmd(
    resource_id: Annotated[str, typer.Argument(help="Resource ID.")],
    summary_id: Annotated[str, typer.Argument(help="Summary version to regenerate.")],
    overwrite: Annotated[
        bool,
        typer.Option(
            "--overwrite",
            help="Replace the version's content in place. The old content is lost.",
        ),
    ] = False,
    prompt: PromptOption = None,
    tone: ToneOption = None,
    audience: AudienceOption = None,
    focus: FocusOption = None,
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Regenerate a summary, keeping the original unless --overwrite is given."""
    cfg = load_cfg(db)
    with open_repo(db) as repo:
        item = repo.get_owned_item(owner, resource_id, ItemKind.RESOURCE)
        if item is None:
            fail(err_item_not_found(resource_id, "resource"))

        chain = SummaryVersionChain(repo)
        try:
            existing = chain.get(owner, summary_id)
        except NotFound:
            fail(err_summary_not_found(summary_id, resource_id))
        if existing.resource_id != resource_id:
            fail(err_summary_not_found(summary_id, resource_id))
        if not item.text.strip():
            fail(err_no_text(resource_id))

        options = SummaryOptions(
            kind=existing.kind,
            custom_prompt=prompt,
            tone=tone,
            audience=audience,
            focus=list(focus or []),
        )
        require_api_key(cfg.summaries.model)
        try:
            content = ResourceSummarizer(cfg.summaries.model).generate(item.text, options)
            result = chain.regenerate(
                owner, resource_id, summary_id, content, preserve_original=not overwrite
            )
        except SummarizationUnavailable as exc:
            fail(err_summarization_unavailable(str(exc)))
        except ConcurrentRegeneration:
            fail(err_concurrent_regeneration(summary_id))
        except NotFound:
            fail(err_summary_not_found(summary_id, resource_id))

    _show_version(result.summary)
    if result.original is not None:
        console.print(f"  [dim]Original kept: {result.original.id}[/]")
    else:
        console.print("  [dim]Overwritten in place.[/]")


@summaries_app.command("history")
def summaries_history_cmd(
    summary_id: Annotated[str, typer.Argument(help="Summary version to start from.")],
    owner: OwnerOption = DEFAULT_OWNER,
    db: DbOption = DEFAULT_DB,
) -> None:
    """Show a summary's version chain, newest first."""
    with open_repo(db) as repo:
        try:
            versions = SummaryVersionChain(repo).history(owner, summary_id)
        except NotFound:
            fail(err_summary_not_found(summary_id))

    table = Table(title=f"History of {summary_id}", header_style="bold")
    table.add_column("Version", style="bold")
    table.add_column("Kind")
    table.add_column("Generated")
    table.add_column("Content")
    for version in versions:
        preview = version.content if len(version.content) <= 60 else version.content[:57] + "..."
        table.add_row(version.id, str(version.kind), (version.generated_at or "")[:16], preview)
    console.print(table)


def _show_version(version: SummaryVersion) -> None:
    console.print(f"\n[bold]{version.kind}[/]  {version.id}")
    console.print(Panel(version.content, expand=False))
