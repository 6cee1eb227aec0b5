"""Tests for the semlink summaries command group."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from semlink.cli.main import app
from semlink.db.models import ContentItem, ItemKind, SummaryKind, SummaryLength, SummaryType
from semlink.db.repository import Repository
from semlink.summaries.chain import SummaryVersionChain

runner = CliRunner()


def _out(result) -> str:
    return " ".join(result.output.split())


@pytest.fixture
def seeded(cli_repo: Repository) -> Repository:
    cli_repo.add_item(
        ContentItem(id="r1", owner_id="local", kind=ItemKind.RESOURCE, text="A long article.")
    )
    cli_repo.add_item(ContentItem(id="r2", owner_id="local", kind=ItemKind.RESOURCE, text="Other."))
    cli_repo.add_item(ContentItem(id="blank", owner_id="local", kind=ItemKind.RESOURCE))
    return cli_repo


# ---------------------------------------------------------------------------
# summaries create
# ---------------------------------------------------------------------------


def test_create_first_summary(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    result = runner.invoke(app, ["summaries", "create", "r1", "--db", str(cli_db)])

    assert result.exit_code == 0, result.output
    assert "Generated summary." in _out(result)
    assert "GENERAL/MEDIUM" in _out(result)
    assert "Previous version" not in _out(result)
    versions = seeded.list_summary_versions("local", "r1")
    assert [v.content for v in versions] == ["Generated summary."]


def test_create_again_chains_new_version(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    runner.invoke(app, ["summaries", "create", "r1", "--db", str(cli_db)])
    litellm_reply.reply.content = "Second take."

    result = runner.invoke(app, ["summaries", "create", "r1", "--db", str(cli_db)])

    assert result.exit_code == 0, result.output
    assert "Previous version" in _out(result)
    head = SummaryVersionChain(seeded).current("local", "r1", SummaryKind())
    assert head.content == "Second take."
    assert head.predecessor_id is not None


def test_create_type_length_and_options(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    result = runner.invoke(
        app,
        [
            "summaries", "create", "r1",
            "--type", "technical", "--length", "short",
            "--tone", "formal", "--focus", "methods", "--focus", "results",
            "--db", str(cli_db),
        ],
    )

    assert result.exit_code == 0, result.output
    kwargs = litellm_reply.call_args.kwargs
    assert kwargs["max_tokens"] == 150
    system = kwargs["messages"][0]["content"]
    assert "Summary Type: TECHNICAL" in system
    assert "Tone: formal" in system
    assert "Focus Areas: methods, results" in system
    kind = SummaryKind(SummaryType.TECHNICAL, SummaryLength.SHORT)
    assert SummaryVersionChain(seeded).current("local", "r1", kind) is not None


def test_create_custom_prompt(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    result = runner.invoke(
        app, ["summaries", "create", "r1", "--prompt", "Only list names.", "--db", str(cli_db)]
    )
    assert result.exit_code == 0, result.output
    assert "Instructions: Only list names." in litellm_reply.call_args.kwargs["messages"][0]["content"]


def test_create_uses_config_model(
    cli_db: Path, seeded: Repository, litellm_reply, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SEMLINK_SUMMARY_MODEL", "ollama/llama3")
    result = runner.invoke(app, ["summaries", "create", "r1", "--db", str(cli_db)])
    assert result.exit_code == 0, result.output
    assert litellm_reply.call_args.kwargs["model"] == "ollama/llama3"


def test_create_empty_reply_writes_nothing(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    litellm_reply.reply.content = ""
    result = runner.invoke(app, ["summaries", "create", "r1", "--db", str(cli_db)])
    assert result.exit_code == 1
    assert "No summary was written" in _out(result)
    assert seeded.list_summary_versions("local", "r1") == []


def test_create_unknown_resource_exits_1(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    result = runner.invoke(app, ["summaries", "create", "nope", "--db", str(cli_db)])
    assert result.exit_code == 1
    assert "not found" in _out(result)
    litellm_reply.assert_not_called()


def test_create_resource_without_text_exits_1(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    result = runner.invoke(app, ["summaries", "create", "blank", "--db", str(cli_db)])
    assert result.exit_code == 1
    assert "has no text" in _out(result)


def test_create_missing_api_key_exits_1(
    cli_db: Path, seeded: Repository, litellm_reply, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["summaries", "create", "r1", "--db", str(cli_db)])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in _out(result)
    litellm_reply.assert_not_called()


# ---------------------------------------------------------------------------
# summaries regenerate
# ---------------------------------------------------------------------------


@pytest.fixture
def first_version(seeded: Repository):
    return SummaryVersionChain(seeded).create("local", "r1", SummaryKind(), "Original text.")


def test_regenerate_keeps_original(cli_db: Path, seeded: Repository, first_version, litellm_reply) -> None:
    result = runner.invoke(
        app, ["summaries", "regenerate", "r1", first_version.id, "--db", str(cli_db)]
    )

    assert result.exit_code == 0, result.output
    assert "Original kept" in _out(result)
    versions = seeded.list_summary_versions("local", "r1")
    assert len(versions) == 2
    assert seeded.get_summary_version("local", first_version.id).content == "Original text."


def test_regenerate_overwrite(cli_db: Path, seeded: Repository, first_version, litellm_reply) -> None:
    result = runner.invoke(
        app, ["summaries", "regenerate", "r1", first_version.id, "--overwrite", "--db", str(cli_db)]
    )

    assert result.exit_code == 0, result.output
    assert "Overwritten in place" in _out(result)
    versions = seeded.list_summary_versions("local", "r1")
    assert [v.content for v in versions] == ["Generated summary."]


def test_regenerate_keeps_kind(cli_db: Path, seeded: Repository, litellm_reply) -> None:
    kind = SummaryKind(SummaryType.BRIEF, SummaryLength.LONG)
    version = SummaryVersionChain(seeded).create("local", "r1", kind, "Brief.")

    result = runner.invoke(app, ["summaries", "regenerate", "r1", version.id, "--db", str(cli_db)])

    assert result.exit_code == 0, result.output
    assert litellm_reply.call_args.kwargs["max_tokens"] == 1000
    assert SummaryVersionChain(seeded).current("local", "r1", kind).content == "Generated summary."


def test_regenerate_wrong_resource_exits_1(
    cli_db: Path, seeded: Repository, first_version, litellm_reply
) -> None:
    result = runner.invoke(
        app, ["summaries", "regenerate", "r2", first_version.id, "--db", str(cli_db)]
    )
    assert result.exit_code == 1
    assert "not found" in _out(result)
    litellm_reply.assert_not_called()


def test_regenerate_failure_leaves_chain_untouched(
    cli_db: Path, seeded: Repository, first_version, litellm_reply
) -> None:
    litellm_reply.reply.content = "   "
    result = runner.invoke(
        app, ["summaries", "regenerate", "r1", first_version.id, "--overwrite", "--db", str(cli_db)]
    )
    assert result.exit_code == 1
    assert seeded.get_summary_version("local", first_version.id).content == "Original text."


# ---------------------------------------------------------------------------
# summaries history
# ---------------------------------------------------------------------------


def test_history_newest_first(cli_db: Path, seeded: Repository, first_version) -> None:
    chain = SummaryVersionChain(seeded)
    second = chain.regenerate("local", "r1", first_version.id, "Revised text.").summary

    result = runner.invoke(app, ["summaries", "history", second.id, "--db", str(cli_db)])

    assert result.exit_code == 0, result.output
    out = _out(result)
    assert "History of" in out
    assert out.index("Revised") < out.index("Original")


def test_history_unknown_exits_1(cli_db: Path) -> None:
    result = runner.invoke(app, ["summaries", "history", "nope", "--db", str(cli_db)])
    assert result.exit_code == 1
    assert "not found" in _out(result)
