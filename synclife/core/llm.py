"""
SyncLife — LLM Provider Abstraction.

Single public function `complete()` that routes to the configured provider.
Provider is selected on first use from the LLM_PROVIDER setting.
Supports: gemini (default), anthropic, openai, cohere.

A plain call asks for JSON output where the provider's API has a switch
for it; callers still validate the text they get back. A grounded call
lets the model search the web and returns the pages it actually used.
Only gemini supports grounding; the other providers answer from the model
alone and report no sources.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroundingSource:
    uri: str
    title: str = ""


@dataclass
class Completion:
    text: str
    sources: list[GroundingSource] = field(default_factory=list)


# (api_key, model, system, user_message, max_tokens, grounded) -> Completion
_ProviderFn = Callable[[str, str, str, str, int, bool], Awaitable[Completion]]


class LLMUnavailableError(RuntimeError):
    """Raised when no API key is configured for the selected provider."""


# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------


def _gemini_sources(response: Any) -> list[GroundingSource]:
    """Collect the web pages behind a grounded gemini answer, first use wins."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: list[GroundingSource] = []
    seen: set[str] = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", "") or ""
        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(GroundingSource(uri=uri, title=getattr(web, "title", "") or ""))
    return sources


async def _complete_gemini(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, grounded: bool,
) -> Completion:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    gm = genai.GenerativeModel(model_name=model, system_instruction=system)
    if grounded:
        # the search tool cannot be combined with JSON mode
        response = await gm.generate_content_async(
            user_message,
            generation_config=genai.types.GenerationConfig(max_output_tokens=max_tokens),
            tools="google_search_retrieval",
        )
        return Completion(text=response.text, sources=_gemini_sources(response))

    response = await gm.generate_content_async(
        user_message,
        generation_config=genai.types.GenerationConfig(
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
        ),
    )
    return Completion(text=response.text)


async def _complete_anthropic(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, grounded: bool,
) -> Completion:
    import anthropic

    client = anthropic.AsyncAnthropic(api_key=api_key)
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=[{"role": "user", "content": user_message}],
    )
    return Completion(text=response.content[0].text)


async def _complete_openai(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, grounded: bool,
) -> Completion:
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=api_key)
    response = await client.chat.completions.create(
        model=model,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
    )
    return Completion(text=response.choices[0].message.content or "")


async def _complete_cohere(
    api_key: str, model: str, system: str, user_message: str, max_tokens: int, grounded: bool,
) -> Completion:
    import cohere

    client = cohere.AsyncClientV2(api_key=api_key)
    response = await client.chat(
        model=model,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user_message},
        ],
    )
    return Completion(text=response.message.content[0].text)


# ---------------------------------------------------------------------------
# Provider selection (runs once at first call)
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, tuple[_ProviderFn, str]] = {
    "gemini":    (_complete_gemini,    "gemini-2.0-flash"),
    "anthropic": (_complete_anthropic, "claude-haiku-4-5-20251001"),
    "openai":    (_complete_openai,    "gpt-4o-mini"),
    "cohere":    (_complete_cohere,    "command-a-03-2025"),
}

_GROUNDED_PROVIDERS = frozenset({_complete_gemini})


def _select_provider() -> tuple[_ProviderFn, str, str]:
    """Read settings and return (provider_fn, model, api_key)."""
    from synclife.config import settings

    provider_name = settings.LLM_PROVIDER.lower()
    if provider_name not in _PROVIDERS:
        raise ValueError(
            f"Unknown LLM_PROVIDER={provider_name!r}. "
            f"Supported: {', '.join(_PROVIDERS)}"
        )
    if not settings.LLM_API_KEY:
        raise LLMUnavailableError("LLM_API_KEY is not set; AI suggestions are disabled")

    fn, default_model = _PROVIDERS[provider_name]
    model = settings.LLM_MODEL or default_model

    logger.info("LLM provider: %s, model: %s", provider_name, model)
    return fn, model, settings.LLM_API_KEY


# Lazy singleton, populated on first successful call to complete()
_provider_fn: _ProviderFn | None = None
_model: str = ""
_api_key: str = ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def complete(
    system: str, user_message: str, max_tokens: int = 1024, grounded: bool = False,
) -> Completion:
    """Send a prompt to the configured LLM provider.

    With `grounded=True` the provider may search the web; the pages it used
    come back in `Completion.sources`. Raises on configuration and API
    errors; callers should handle exceptions.
    """
    global _provider_fn, _model, _api_key

    if _provider_fn is None:
        _provider_fn, _model, _api_key = _select_provider()

    if grounded and _provider_fn not in _GROUNDED_PROVIDERS:
        logger.debug("Provider has no search grounding; answering without sources")

    return await _provider_fn(_api_key, _model, system, user_message, max_tokens, grounded)
