"""Tests for the LiteLLM wrappers: provider lookup, key checks, model calls."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from semlink.similarity.llm_client import (
    api_key_env,
    complete,
    embed,
    provider_of,
    validate_api_key,
)


def _completion(content):
    response = MagicMock()
    response.choices[0].message.content = content
    return response


# ------------------------------------------------------------------
# provider_of / api_key_env
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    ("model", "provider"),
    [
        ("openai/text-embedding-3-small", "openai"),
        ("Anthropic/claude-3-5-haiku-20241022", "anthropic"),
        ("ollama/nomic-embed-text", "ollama"),
        ("text-embedding-3-small", "openai"),
        ("azure/deployments/my-embedder", "azure"),
    ],
)
def test_provider_of(model, provider):
    assert provider_of(model) == provider


def test_api_key_env_known_and_local_providers():
    assert api_key_env("VOYAGE") == "VOYAGE_API_KEY"
    assert api_key_env("ollama") is None


def test_api_key_env_unknown_provider_follows_convention():
    assert api_key_env("together_ai") == "TOGETHER_AI_API_KEY"


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_missing_openai_key_names_variable(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/text-embedding-3-small")


def test_bare_model_name_needs_openai_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="'openai'"):
        validate_api_key("text-embedding-3-small")


def test_key_present_passes(monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "k")
    validate_api_key("mistral/mistral-embed")


def test_local_and_unknown_providers_skip_check(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    validate_api_key("ollama/nomic-embed-text")
    validate_api_key("someprovider/some-model")


# ------------------------------------------------------------------
# complete()
# ------------------------------------------------------------------


def test_complete_returns_first_choice_text():
    with patch(
        "semlink.similarity.llm_client.litellm.completion",
        return_value=_completion("Key points: retries back off."),
    ):
        result = complete("openai/gpt-4o-mini", [{"role": "user", "content": "Summarize"}])

    assert result == "Key points: retries back off."


def test_complete_none_content_becomes_empty_string():
    with patch(
        "semlink.similarity.llm_client.litellm.completion", return_value=_completion(None)
    ):
        assert complete("openai/gpt-4o-mini", [{"role": "user", "content": "x"}]) == ""


def test_complete_forwards_generation_settings():
    messages = [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}]
    with patch(
        "semlink.similarity.llm_client.litellm.completion", return_value=_completion("ok")
    ) as mock_call:
        complete("openai/gpt-4o-mini", messages, max_tokens=150, temperature=0.1, num_retries=1)

    kwargs = mock_call.call_args.kwargs
    assert kwargs["messages"] == messages
    assert kwargs["max_tokens"] == 150
    assert kwargs["temperature"] == 0.1
    assert kwargs["num_retries"] == 1


# ------------------------------------------------------------------
# embed()
# ------------------------------------------------------------------


def test_embed_sends_single_input_and_returns_floats():
    response = MagicMock()
    response.data = [{"embedding": [1, 0.5, 0]}]

    with patch(
        "semlink.similarity.llm_client.litellm.embedding", return_value=response
    ) as mock_call:
        vector = embed("openai/text-embedding-3-small", "hello")

    assert vector == [1.0, 0.5, 0.0]
    assert all(isinstance(x, float) for x in vector)
    assert mock_call.call_args.kwargs["input"] == ["hello"]
    assert mock_call.call_args.kwargs["num_retries"] == 3


def test_embed_propagates_provider_errors():
    with patch(
        "semlink.similarity.llm_client.litellm.embedding",
        side_effect=RuntimeError("rate limited"),
    ):
        with pytest.raises(RuntimeError, match="rate limited"):
            embed("openai/text-embedding-3-small", "hello")
