"""semlink init: create a knowledge base in a directory.

Creates:
  .semlink.db              empty knowledge base with schema
  semlink.yaml             per-project config with the defaults spelled out
  ~/.semlink/config.yaml   global model config (created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from semlink.cli._shared import console
from semlink.config import ensure_global_config
from semlink.db.connection import Database
from semlink.db.schema import initialize

_DEFAULT_PROJECT_DIR = Path(".")

_PROJECT_YAML = """\
# semlink project configuration.
# API keys are read from the environment, never from this file.

embedding:
  model: openai/text-embedding-3-small
  dimensions: 1536

similarity:
  threshold: 0.7
  limit: 10

duplicates:
  threshold: 0.8
  limit: 5

suggestions:
  threshold: 0.7
  limit: 5

summaries:
  model: openai/gpt-4o-mini
  type: GENERAL
  length: MEDIUM
"""


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
) -> None:
    """Create .semlink.db and semlink.yaml in a directory."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    db_path = project_dir / ".semlink.db"
    if db_path.exists():
        console.print(f"[yellow]⚠[/]  {db_path} already exists; schema is brought up to date.")

    with Database(db_path) as conn:
        initialize(conn)
    console.print(f"  [green]✓[/] {db_path}")

    yaml_path = project_dir / "semlink.yaml"
    if yaml_path.exists():
        console.print(f"  [dim]- {yaml_path} kept[/]")
    else:
        yaml_path.write_text(_PROJECT_YAML, encoding="utf-8")
        console.print(f"  [green]✓[/] {yaml_path}")

    cfg_path = ensure_global_config()
    console.print(f"  [green]✓[/] {cfg_path} (global config)")

    console.print("\nNext steps:")
    console.print("  1. semlink add <id> --text \"...\"        (register and embed content)")
    console.print("  2. semlink similar \"query\"               (semantic search)")
    console.print("  3. semlink refs suggest <resource-id>     (find links)")
    console.print("  4. semlink summaries create <resource-id> (summarize)")
