"""Thin wrappers over LiteLLM for the two model calls semlink makes.

Embeddings feed the vector index; completions feed the summarizer. Both use
LiteLLM's own retry (``num_retries`` with exponential backoff) and both fail
loudly: whether a failure is advisory is the caller's decision.
"""

from __future__ import annotations

import os

import litellm

litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

# Providers whose models need a key in the environment. None marks a local
# provider. Providers missing from the table are not checked.
API_KEY_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Provider prefix of a LiteLLM model string; bare names are OpenAI models."""
    return model.split("/", 1)[0].lower() if "/" in model else "openai"


def api_key_env(provider: str) -> str | None:
    """Environment variable holding *provider*'s key.

    Unknown providers get the ``<PROVIDER>_API_KEY`` convention; local
    providers get None.
    """
    provider = provider.lower()
    if provider in API_KEY_ENV:
        return API_KEY_ENV[provider]
    return f"{provider.upper()}_API_KEY"


def validate_api_key(model: str) -> None:
    """Fail fast when *model*'s provider needs a key that is not set.

    Raises:
        EnvironmentError: If the provider is known and its key variable is empty.
    """
    provider = provider_of(model)
    env_var = API_KEY_ENV.get(provider)
    if env_var is None:
        return
    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 500,
    temperature: float = 0.3,
    num_retries: int = 3,
) -> str:
    """Run one chat completion and return the first choice's text ("" if none)."""
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""


def embed(model: str, text: str, num_retries: int = 3) -> list[float]:
    """Embed a single text and return its vector as plain floats."""
    response = litellm.embedding(
        model=model,
        input=[text],
        num_retries=num_retries,
    )
    return [float(x) for x in response.data[0]["embedding"]]
