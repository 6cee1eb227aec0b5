"""semlink CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from semlink._logging import configure_logging
from semlink.cli.init import init_cmd
from semlink.cli.items import add_cmd, remove_cmd
from semlink.cli.refs import refs_app
from semlink.cli.search import duplicates_cmd, similar_cmd
from semlink.cli.summaries import summaries_app


def _installed_version() -> str:
    try:
        return importlib.metadata.version("semlink")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"semlink {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="semlink",
    help=(
        "semlink: semantic linking for a personal knowledge base.\n\n"
        "  semlink similar     Semantic search over resources and notes.\n"
        "  semlink refs        Typed references and AI suggestions.\n"
        "  semlink summaries   Versioned AI summaries."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """semlink: semantic linking for a personal knowledge base."""
    configure_logging()


app.command("init")(init_cmd)
app.command("add")(add_cmd)
app.command("remove")(remove_cmd)
app.command("similar")(similar_cmd)
app.command("duplicates")(duplicates_cmd)
app.add_typer(refs_app, name="refs")
app.add_typer(summaries_app, name="summaries")


@app.command("version")
def version_cmd() -> None:
    """Show the installed semlink version."""
    typer.echo(f"semlink {_installed_version()}")


if __name__ == "__main__":
    app()
