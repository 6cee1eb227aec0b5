"""semlink configuration loader.

Layers, highest priority first:
  1. CLI flags, applied by each command after loading
  2. SEMLINK_EMBEDDING_MODEL, SEMLINK_EMBEDDING_DIMENSIONS, SEMLINK_SUMMARY_MODEL
  3. semlink.yaml next to .semlink.db
  4. ~/.semlink/config.yaml
  5. Dataclass defaults

Neither YAML file may hold credentials. Files are parsed with yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from semlink.db.models import SummaryLength, SummaryType

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".semlink"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "semlink.yaml"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Does NOT match max_tokens or threshold keys.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "similarity", "duplicates", "suggestions", "summaries"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (semlink.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Vector length D; every index entry must match it.
    """

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536


@dataclass
class SimilarityCfg:
    """Plain similarity search defaults (semlink.yaml: similarity:)."""

    threshold: float = 0.7
    limit: int = 10


@dataclass
class DuplicatesCfg:
    """Duplicate detection (semlink.yaml: duplicates:).

    Attributes:
        threshold: Minimum cosine score for a duplicate candidate.
        limit: Maximum candidates returned.
        overfetch: Multiplier applied to *limit* when querying the index,
            so the excluded item cannot consume a result slot.
    """

    threshold: float = 0.8
    limit: int = 5
    overfetch: int = 2


@dataclass
class SuggestionsCfg:
    """Reference suggestion defaults (semlink.yaml: suggestions:)."""

    threshold: float = 0.7
    limit: int = 5


@dataclass
class SummariesCfg:
    """Summary generation (semlink.yaml: summaries:)."""

    model: str = "openai/gpt-4o-mini"
    type: SummaryType = SummaryType.GENERAL
    length: SummaryLength = SummaryLength.MEDIUM


@dataclass
class SemlinkConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    similarity: SimilarityCfg = field(default_factory=SimilarityCfg)
    duplicates: DuplicatesCfg = field(default_factory=DuplicatesCfg)
    suggestions: SuggestionsCfg = field(default_factory=SuggestionsCfg)
    summaries: SummariesCfg = field(default_factory=SummariesCfg)


# ---------------------------------------------------------------------------
# Reading layers
# ---------------------------------------------------------------------------


def _secret_paths(obj: Any, prefix: str = "") -> Iterator[str]:
    """Yield dotted paths of every key in *obj* that looks like a credential."""
    if not isinstance(obj, dict):
        return
    for key, value in obj.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if _API_KEY_RE.search(str(key)):
            yield dotted
        yield from _secret_paths(value, dotted)


def _read_layer(path: Path) -> dict[str, Any]:
    """Parse one YAML layer; a missing or empty file is an empty layer.

    Raises:
        ConfigError: If the file is not a mapping or holds a credential.
    """
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"'{path}' must contain a YAML mapping, got {type(data).__name__}")

    for dotted in _secret_paths(data):
        env_name = dotted.rsplit(".", 1)[-1].upper().replace("-", "_")
        raise ConfigError(
            f"'{path}' contains a forbidden key '{dotted}'.\n"
            f"  Credentials belong in the environment, never in {path.name}.\n"
            f"  Delete the key and run:  export {env_name}=<value>"
        )

    for section in sorted(set(data) - _KNOWN_SECTIONS):
        warnings.warn(f"'{path}': unknown section '{section}' ignored", UserWarning, stacklevel=3)
    return data


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def _number(cast: type, raw: Any, name: str):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _threshold(raw: Any, name: str) -> float:
    value = _number(float, raw, name)
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must be between 0 and 1, got {value}")
    return value


def _positive(raw: Any, name: str) -> int:
    value = _number(int, raw, name)
    if value < 1:
        raise ConfigError(f"{name} must be >= 1, got {value}")
    return value


def _enum_member(enum_cls: type, raw: Any, name: str):
    try:
        return enum_cls(str(raw).upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"{name} must be one of {allowed}, got '{raw}'") from None


def _merge(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Overlay *layer* on *base* section by section; later keys win."""
    merged = {
        name: dict(section) if isinstance(section, dict) else section
        for name, section in base.items()
    }
    for name, section in layer.items():
        if isinstance(section, dict) and isinstance(merged.get(name), dict):
            merged[name].update(section)
        else:
            merged[name] = section
    return merged


def _cfg_from_dict(data: dict[str, Any]) -> SemlinkConfig:
    """Build a *SemlinkConfig* from a merged raw YAML dict."""
    for name in _KNOWN_SECTIONS & set(data):
        if data[name] is None:
            data[name] = {}
        elif not isinstance(data[name], dict):
            raise ConfigError(f"'{name}' must be a mapping of settings")

    cfg = SemlinkConfig()

    if "embedding" in data:
        e = data["embedding"]
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=_positive(
                e.get("dimensions", cfg.embedding.dimensions), "embedding.dimensions"
            ),
        )

    if "similarity" in data:
        s = data["similarity"]
        cfg.similarity = SimilarityCfg(
            threshold=_threshold(
                s.get("threshold", cfg.similarity.threshold), "similarity.threshold"
            ),
            limit=_positive(s.get("limit", cfg.similarity.limit), "similarity.limit"),
        )

    if "duplicates" in data:
        d = data["duplicates"]
        cfg.duplicates = DuplicatesCfg(
            threshold=_threshold(
                d.get("threshold", cfg.duplicates.threshold), "duplicates.threshold"
            ),
            limit=_positive(d.get("limit", cfg.duplicates.limit), "duplicates.limit"),
            overfetch=_positive(
                d.get("overfetch", cfg.duplicates.overfetch), "duplicates.overfetch"
            ),
        )

    if "suggestions" in data:
        sg = data["suggestions"]
        cfg.suggestions = SuggestionsCfg(
            threshold=_threshold(
                sg.get("threshold", cfg.suggestions.threshold), "suggestions.threshold"
            ),
            limit=_positive(sg.get("limit", cfg.suggestions.limit), "suggestions.limit"),
        )

    if "summaries" in data:
        sm = data["summaries"]
        cfg.summaries = SummariesCfg(
            model=str(sm.get("model", cfg.summaries.model)),
            type=_enum_member(SummaryType, sm.get("type", cfg.summaries.type.value), "summaries.type"),
            length=_enum_member(
                SummaryLength, sm.get("length", cfg.summaries.length.value), "summaries.length"
            ),
        )

    return cfg


def _apply_env_overrides(cfg: SemlinkConfig) -> SemlinkConfig:
    """Apply SEMLINK_* environment variable overrides (layer 2)."""
    if model := os.environ.get("SEMLINK_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if dims := os.environ.get("SEMLINK_EMBEDDING_DIMENSIONS"):
        cfg.embedding.dimensions = _positive(dims, "SEMLINK_EMBEDDING_DIMENSIONS")
    if model := os.environ.get("SEMLINK_SUMMARY_MODEL"):
        cfg.summaries.model = model
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SemlinkConfig:
    """Build the effective configuration for the knowledge base in *project_dir*.

    The global file is read first and ``semlink.yaml`` in *project_dir* (the
    current directory by default) is laid over it; SEMLINK_* variables win
    over both. Neither file may hold credentials.

    Raises:
        ConfigError: On a credential-like key or an out-of-range value.
    """
    global_path = global_config_path or _GLOBAL_CONFIG_PATH
    project_path = (project_dir or Path.cwd()) / _PROJECT_CONFIG_NAME

    raw = _merge(_read_layer(global_path), _read_layer(project_path))
    return _apply_env_overrides(_cfg_from_dict(raw))


_GLOBAL_TEMPLATE = """\
# semlink global defaults, shared by every knowledge base.
# Credentials do not go here; export them instead, e.g.
#   export OPENAI_API_KEY=sk-...

embedding:
  model: openai/text-embedding-3-small
  dimensions: 1536

summaries:
  model: openai/gpt-4o-mini
"""


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Write the default global config unless one exists; return its path.

    The directory is created 0700 and the file 0600.
    """
    path = global_config_path or _GLOBAL_CONFIG_PATH
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(_GLOBAL_TEMPLATE, encoding="utf-8")
        path.chmod(0o600)
    return path
