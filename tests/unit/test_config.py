"""Tests for the semlink config loader."""

from __future__ import annotations

import os
import stat
import warnings
from pathlib import Path

import pytest
import yaml

from semlink.config import (
    ConfigError,
    DuplicatesCfg,
    EmbeddingCfg,
    SemlinkConfig,
    ensure_global_config,
    load_config,
)
from semlink.db.models import SummaryLength, SummaryType


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("SEMLINK_EMBEDDING_MODEL", "SEMLINK_EMBEDDING_DIMENSIONS", "SEMLINK_SUMMARY_MODEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def missing_global(tmp_path: Path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


# ---------------------------------------------------------------------------
# Defaults: no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path, missing_global: Path) -> None:
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.embedding.dimensions == 1536
    assert cfg.similarity.threshold == 0.7
    assert cfg.similarity.limit == 10
    assert cfg.duplicates.threshold == 0.8
    assert cfg.duplicates.limit == 5
    assert cfg.duplicates.overfetch == 2
    assert cfg.suggestions.limit == 5
    assert cfg.summaries.model == "openai/gpt-4o-mini"
    assert cfg.summaries.type == SummaryType.GENERAL
    assert cfg.summaries.length == SummaryLength.MEDIUM


def test_dataclass_defaults_match_loader() -> None:
    assert SemlinkConfig().embedding == EmbeddingCfg()
    assert SemlinkConfig().duplicates == DuplicatesCfg()


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"summaries": {"model": "anthropic/claude-3-5-haiku-20241022"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.summaries.model == "anthropic/claude-3-5-haiku-20241022"
    assert cfg.embedding.model == "openai/text-embedding-3-small"


@pytest.mark.parametrize("content", ["", "# nothing here\n"])
def test_load_config_global_empty_file(tmp_path: Path, content: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(content, encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.summaries.model == "openai/gpt-4o-mini"


# ---------------------------------------------------------------------------
# Per-project config
# ---------------------------------------------------------------------------


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"embedding": {"model": "openai/text-embedding-3-large"}})
    _write_yaml(tmp_path / "semlink.yaml", {"embedding": {"model": "ollama/nomic-embed-text"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "ollama/nomic-embed-text"


def test_load_config_project_partial_override(tmp_path: Path) -> None:
    """A project can override one field; global values for the others survive."""
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"duplicates": {"threshold": 0.9, "limit": 8}})
    _write_yaml(tmp_path / "semlink.yaml", {"duplicates": {"limit": 3}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.duplicates.limit == 3
    assert cfg.duplicates.threshold == pytest.approx(0.9)


def test_load_config_summary_kind_is_case_insensitive(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "semlink.yaml", {"summaries": {"type": "technical", "length": "Short"}})
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.summaries.type == SummaryType.TECHNICAL
    assert cfg.summaries.length == SummaryLength.SHORT


# ---------------------------------------------------------------------------
# Value validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data, match",
    [
        ({"similarity": {"threshold": 1.5}}, "similarity.threshold"),
        ({"duplicates": {"threshold": -0.1}}, "duplicates.threshold"),
        ({"suggestions": {"limit": 0}}, "suggestions.limit"),
        ({"embedding": {"dimensions": 0}}, "embedding.dimensions"),
        ({"summaries": {"type": "poetic"}}, "summaries.type"),
    ],
)
def test_invalid_values_raise_config_error(
    tmp_path: Path, missing_global: Path, data: dict, match: str
) -> None:
    _write_yaml(tmp_path / "semlink.yaml", data)
    with pytest.raises(ConfigError, match=match):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


# ---------------------------------------------------------------------------
# API key validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "bad_key",
    ["api_key", "apikey", "OPENAI_API_KEY", "secret", "password", "token", "api-key"],
)
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(f"{bad_key}: sk-abc123\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_global_config_rejects_nested_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_max_tokens_style_keys_allowed(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"summaries": {"max_tokens": 500}})
    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.summaries.model == "openai/gpt-4o-mini"


# ---------------------------------------------------------------------------
# Unknown key warnings
# ---------------------------------------------------------------------------


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"unknown_section": {"foo": "bar"}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)

    assert any("unknown_section" in str(w.message) for w in caught)
    assert cfg.similarity.limit == 10


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def test_env_var_embedding_overrides(
    tmp_path: Path, missing_global: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_yaml(tmp_path / "semlink.yaml", {"embedding": {"dimensions": 768}})
    monkeypatch.setenv("SEMLINK_EMBEDDING_MODEL", "openai/text-embedding-3-large")
    monkeypatch.setenv("SEMLINK_EMBEDDING_DIMENSIONS", "3072")

    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.embedding.model == "openai/text-embedding-3-large"
    assert cfg.embedding.dimensions == 3072


def test_env_var_summary_model_override(
    tmp_path: Path, missing_global: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SEMLINK_SUMMARY_MODEL", "ollama/llama3")
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.summaries.model == "ollama/llama3"


@pytest.mark.parametrize("value", ["many", "0"])
def test_env_var_bad_dimensions(
    tmp_path: Path, missing_global: Path, monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    monkeypatch.setenv("SEMLINK_EMBEDDING_DIMENSIONS", value)
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".semlink" / "config.yaml"
    result = ensure_global_config(global_config_path=target)

    assert result == target
    assert target.exists()
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert data["embedding"]["model"] == "openai/text-embedding-3-small"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_ensure_global_config_permissions(tmp_path: Path) -> None:
    target = tmp_path / ".semlink" / "config.yaml"
    ensure_global_config(global_config_path=target)

    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    assert stat.S_IMODE(target.parent.stat().st_mode) == 0o700


def test_ensure_global_config_keeps_existing(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    target.write_text("summaries:\n  model: ollama/llama3\n", encoding="utf-8")

    ensure_global_config(global_config_path=target)
    assert "ollama/llama3" in target.read_text(encoding="utf-8")


def test_generated_global_config_loads_cleanly(tmp_path: Path) -> None:
    target = ensure_global_config(global_config_path=tmp_path / "g" / "config.yaml")
    cfg = load_config(project_dir=tmp_path, global_config_path=target)
    assert cfg.embedding.dimensions == 1536


# ---------------------------------------------------------------------------
# Malformed files
# ---------------------------------------------------------------------------


def test_project_config_rejects_api_key_too(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "semlink.yaml", {"summaries": {"api_key": "sk-secret"}})
    with pytest.raises(ConfigError, match="summaries.api_key"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_top_level_list_is_rejected(tmp_path: Path, missing_global: Path) -> None:
    (tmp_path / "semlink.yaml").write_text("- embedding\n- summaries\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="YAML mapping"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_bare_section_means_defaults(tmp_path: Path, missing_global: Path) -> None:
    (tmp_path / "semlink.yaml").write_text("embedding:\nsummaries:\n", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.embedding.dimensions == 1536


def test_scalar_section_is_rejected(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "semlink.yaml", {"similarity": 0.9})
    with pytest.raises(ConfigError, match="'similarity' must be a mapping"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)


def test_non_numeric_limit_is_config_error(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "semlink.yaml", {"similarity": {"limit": "lots"}})
    with pytest.raises(ConfigError, match="similarity.limit must be a number"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)
