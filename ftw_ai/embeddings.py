"""Embed text through the configured embeddings provider, memoised per text."""
from __future__ import annotations

from ftw_ai.cache import TTLCache, embedding_cache
from ftw_ai.config import ProviderConfig, get_config
from ftw_ai.log import get_logger
from ftw_ai.models import EmbeddingResult
from ftw_ai.providers import create_embedding

log = get_logger(__name__)

MAX_INPUT_CHARS = 8000


def empty_embedding() -> EmbeddingResult:
    return EmbeddingResult(embedding=[], model="none")


def embed_text(
    text: str,
    config: ProviderConfig | None = None,
    cache: TTLCache | None = None,
) -> EmbeddingResult:
    """Never raises: any failure yields the empty ``model="none"`` sentinel."""
    config = config or get_config()
    cache = embedding_cache if cache is None else cache
    settings = config.embeddings

    if not config.switches.embeddings or not settings.api_key or not (text or "").strip():
        return empty_embedding()

    cached = cache.get(text)
    if cached is not None:
        return cached

    try:
        vector = create_embedding(settings, text[:MAX_INPUT_CHARS], http=config.http)
    except Exception as exc:
        log.warning("embed_text fallback: %s", exc)
        return empty_embedding()

    if not vector:
        log.warning("Embeddings provider %s returned no vector", settings.provider)
        return empty_embedding()

    result = EmbeddingResult(embedding=vector, model=settings.model)
    cache.set(text, result)
    return result
