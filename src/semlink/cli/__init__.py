"""Typer command line for a local semlink knowledge base."""
