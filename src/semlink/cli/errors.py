"""semlink rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from semlink.cli.errors import err_no_api_key, err_no_db
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from semlink.similarity.llm_client import api_key_env


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_var = api_key_env(provider) or f"{provider.upper()}_API_KEY"
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".semlink.db") -> str:
    """No .semlink.db found."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  semlink init"
    )


def err_config(message: str) -> str:
    """semlink.yaml or the global config is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Fix semlink.yaml (or ~/.semlink/config.yaml) and retry."
    )


def err_item_not_found(item_id: str, kind: str = "item") -> str:
    """Content item missing or owned by someone else."""
    return (
        f"[red]Error:[/] {kind.capitalize()} '{item_id}' not found.\n"
        f"  Run:  semlink add {item_id} --kind {kind if kind != 'item' else 'resource'} --text \"...\""
    )


def err_reference_not_found(edge_id: str, resource_id: str | None = None) -> str:
    """Reference edge missing or owned by someone else."""
    hint = f"semlink refs list {resource_id}" if resource_id else "semlink refs list <resource-id>"
    return (
        f"[red]Error:[/] Reference '{edge_id}' not found.\n"
        f"  Run:  {hint}  to see existing references."
    )


def err_summary_not_found(summary_id: str, resource_id: str | None = None) -> str:
    """Summary version missing, owned by someone else, or of another resource."""
    where = f" for resource '{resource_id}'" if resource_id else ""
    return (
        f"[red]Error:[/] Summary '{summary_id}' not found{where}.\n"
        "  Run:  semlink summaries create <resource-id>  to start a summary chain."
    )


def err_invalid_target(message: str) -> str:
    """Reference target is missing, ambiguous or the source itself."""
    return (
        f"[red]Error:[/] Invalid reference target: {message}\n"
        "  Use exactly one of:  --resource, --project, --area, --note"
    )


def err_dimension_mismatch(expected: int, actual: int, model: str) -> str:
    """Embedding model returns vectors of a different size than the index."""
    return (
        f"[red]Error:[/] Embedding dimension mismatch.\n"
        f"  Index expects:  {expected}\n"
        f"  '{model}' returns:  {actual}\n"
        "  Set embedding.dimensions in semlink.yaml to match the model, "
        "or use a model with the configured size."
    )


def err_embedding_unavailable(message: str) -> str:
    """Embedding provider failed."""
    return (
        f"[red]Error:[/] Embedding failed: {message}\n"
        "  Check your network and API key, then retry.\n"
        "  Set:  SEMLINK_LOG_LEVEL=DEBUG  for details."
    )


def err_summarization_unavailable(message: str) -> str:
    """Summarization model failed; no version was written."""
    return (
        f"[red]Error:[/] Summary generation failed: {message}\n"
        "  No summary was written. Check your API key and retry.\n"
        "  Set:  SEMLINK_LOG_LEVEL=DEBUG  for details."
    )


def err_concurrent_regeneration(summary_id: str) -> str:
    """Another in-place regeneration holds the summary."""
    return (
        f"[red]Error:[/] Summary '{summary_id}' is already being regenerated.\n"
        "  Wait for it to finish, then run the command again."
    )


def err_no_text(item_id: str) -> str:
    """Item has no text to embed or summarize."""
    return (
        f"[red]Error:[/] Item '{item_id}' has no text.\n"
        f"  Run:  semlink add {item_id} --text \"...\"  to set its content."
    )


def warn_no_results(what: str) -> str:
    """Empty result set (not an error)."""
    return (
        f"[yellow]No {what} found.[/]\n"
        "  Lower the threshold with --min-score, or add more content with semlink add."
    )
