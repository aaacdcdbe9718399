"""Thin wrappers around the hosted inference and vector-search APIs.

Chat and embeddings go through the ``openai`` SDK pointed at whichever
OpenAI-compatible vendor is configured (Groq, Together, Fireworks, OpenAI).
Scoping uses the Anthropic messages API; vector search is a plain JSON POST.
"""
from __future__ import annotations

from typing import Any

import anthropic
import openai
import requests
from anthropic import Anthropic
from openai import OpenAI

from ftw_ai.config import HttpSettings, ProviderSettings, VectorSettings
from ftw_ai.log import get_logger
from ftw_ai.retry import retry

log = get_logger(__name__)

_OPENAI_TRANSIENT = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)
_ANTHROPIC_TRANSIENT = (
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)


class ProviderError(RuntimeError):
    """A hosted provider call failed (transport, HTTP status or payload)."""


class ProviderNotConfiguredError(ProviderError):
    """The provider has no API key or endpoint configured."""


def _base_url(url: str) -> str:
    """Accept either a base URL or a full endpoint URL from the env."""
    url = url.rstrip("/")
    for suffix in ("/chat/completions", "/embeddings"):
        if url.endswith(suffix):
            return url[: -len(suffix)]
    return url


def _openai_client(settings: ProviderSettings, http: HttpSettings) -> OpenAI:
    return OpenAI(
        api_key=settings.api_key,
        base_url=_base_url(settings.resolved_url()),
        timeout=http.timeout,
        max_retries=0,
    )


def chat_completion(
    settings: ProviderSettings,
    prompt: str,
    *,
    max_tokens: int,
    temperature: float,
    http: HttpSettings,
    model: str | None = None,
) -> str:
    """Single-turn chat completion; returns ``choices[0].message.content``."""
    if not settings.api_key:
        raise ProviderNotConfiguredError(f"{settings.provider} API key missing")
    model = model or settings.model

    @retry(max_attempts=http.max_attempts, retryable=_OPENAI_TRANSIENT)
    def _call() -> str:
        r = _openai_client(settings, http).chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not r.choices:
            return ""
        return r.choices[0].message.content or ""

    try:
        text = _call()
    except openai.OpenAIError as exc:
        raise ProviderError(f"{settings.provider} chat completion failed: {exc}") from exc
    log.debug("%s/%s returned %d chars", settings.provider, model, len(text))
    return text.strip()


def create_embedding(settings: ProviderSettings, text: str, *, http: HttpSettings) -> list[float]:
    """Embed *text*; returns ``data[0].embedding`` (empty when absent)."""
    if not settings.api_key:
        raise ProviderNotConfiguredError(f"{settings.provider} embeddings key missing")

    @retry(max_attempts=http.max_attempts, retryable=_OPENAI_TRANSIENT)
    def _call() -> list[float]:
        r = _openai_client(settings, http).embeddings.create(model=settings.model, input=text)
        if not r.data:
            return []
        return list(r.data[0].embedding)

    try:
        return _call()
    except openai.OpenAIError as exc:
        raise ProviderError(f"{settings.provider} embeddings failed: {exc}") from exc


def anthropic_message(
    api_key: str,
    model: str,
    prompt: str,
    *,
    max_tokens: int,
    http: HttpSettings,
) -> str:
    """Messages-API call; returns the text of ``content[0]``."""
    if not api_key:
        raise ProviderNotConfiguredError("Claude API key missing")

    @retry(max_attempts=http.max_attempts, retryable=_ANTHROPIC_TRANSIENT)
    def _call() -> str:
        client = Anthropic(api_key=api_key, timeout=http.timeout, max_retries=0)
        r = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        if not r.content:
            return ""
        return getattr(r.content[0], "text", "") or ""

    try:
        return _call().strip()
    except anthropic.AnthropicError as exc:
        raise ProviderError(f"Claude {model} call failed: {exc}") from exc


def vector_query(
    settings: VectorSettings,
    index: str,
    vector: list[float],
    top_k: int,
    filter: dict[str, Any] | None = None,
    *,
    http: HttpSettings,
) -> list[dict[str, Any]]:
    """Similarity search; returns the raw ``matches``/``results`` list."""
    if not settings.configured:
        raise ProviderNotConfiguredError("Vector provider not configured")

    payload: dict[str, Any] = {"index": index, "vector": vector, "topK": top_k}
    if filter:
        payload["filter"] = filter

    @retry(
        max_attempts=http.max_attempts,
        retryable=(requests.ConnectionError, requests.Timeout),
    )
    def _post() -> requests.Response:
        r = requests.post(
            settings.base_url,
            json=payload,
            headers={"Authorization": f"Bearer {settings.api_key}"},
            timeout=http.timeout,
        )
        r.raise_for_status()
        return r

    try:
        data = _post().json()
    except (requests.RequestException, ValueError) as exc:
        raise ProviderError(f"Vector query on {index!r} failed: {exc}") from exc

    if not isinstance(data, dict):
        return []
    matches = data.get("matches") or data.get("results") or []
    return [m for m in matches if isinstance(m, dict)]
