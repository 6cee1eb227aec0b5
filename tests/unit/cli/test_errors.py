"""Tests for semlink rich error messages."""

from __future__ import annotations

import pytest

from semlink.cli.errors import (
    err_concurrent_regeneration,
    err_config,
    err_dimension_mismatch,
    err_embedding_unavailable,
    err_invalid_target,
    err_item_not_found,
    err_no_api_key,
    err_no_db,
    err_no_text,
    err_reference_not_found,
    err_summarization_unavailable,
    err_summary_not_found,
    warn_no_results,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_action(msg: str) -> bool:
    """Every error must contain an actionable instruction."""
    lower = msg.lower()
    return any(
        kw in lower
        for kw in ["run:", "set:", "use", "export ", "semlink ", "fix ", "retry", "wait"]
    )


# ---------------------------------------------------------------------------
# err_no_api_key
# ---------------------------------------------------------------------------


def test_err_no_api_key_contains_provider_and_env_var() -> None:
    msg = err_no_api_key("openai")
    assert "openai" in msg
    assert "OPENAI_API_KEY" in msg


def test_err_no_api_key_unknown_provider_fallback() -> None:
    assert "MYPROVIDER_API_KEY" in err_no_api_key("myprovider")


def test_err_no_api_key_anthropic() -> None:
    assert "ANTHROPIC_API_KEY" in err_no_api_key("Anthropic")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def test_err_no_db_points_to_init() -> None:
    msg = err_no_db("/data/kb/.semlink.db")
    assert "/data/kb/.semlink.db" in msg
    assert "semlink init" in msg


def test_err_item_not_found_suggests_add_with_kind() -> None:
    msg = err_item_not_found("paper-1", "resource")
    assert "Resource 'paper-1'" in msg
    assert "semlink add paper-1 --kind resource" in msg


def test_err_item_not_found_generic_kind_defaults_to_resource() -> None:
    assert "--kind resource" in err_item_not_found("x")


def test_err_reference_not_found_with_resource() -> None:
    msg = err_reference_not_found("e1", "r1")
    assert "'e1'" in msg
    assert "semlink refs list r1" in msg


def test_err_summary_not_found_names_resource() -> None:
    msg = err_summary_not_found("s1", "r1")
    assert "'s1'" in msg
    assert "resource 'r1'" in msg


def test_err_dimension_mismatch_shows_both_sizes() -> None:
    msg = err_dimension_mismatch(1536, 768, "ollama/nomic-embed-text")
    assert "1536" in msg
    assert "768" in msg
    assert "embedding.dimensions" in msg


# ---------------------------------------------------------------------------
# All messages are actionable
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "msg",
    [
        err_no_api_key("openai"),
        err_no_db(),
        err_config("similarity.threshold must be between 0 and 1"),
        err_item_not_found("r1"),
        err_reference_not_found("e1"),
        err_summary_not_found("s1"),
        err_invalid_target("A reference target must be specified."),
        err_dimension_mismatch(3, 2, "openai/text-embedding-3-small"),
        err_embedding_unavailable("timeout"),
        err_summarization_unavailable("rate limited"),
        err_concurrent_regeneration("s1"),
        err_no_text("r1"),
        warn_no_results("similar items"),
    ],
)
def test_every_message_is_actionable(msg: str) -> None:
    assert _has_action(msg)


@pytest.mark.parametrize(
    "msg",
    [
        err_no_db(),
        err_config("bad"),
        err_invalid_target("bad"),
        err_summarization_unavailable("bad"),
    ],
)
def test_errors_are_marked_red(msg: str) -> None:
    assert msg.startswith("[red]Error:[/]")


def test_warning_is_not_an_error() -> None:
    assert "Error" not in warn_no_results("duplicates")
