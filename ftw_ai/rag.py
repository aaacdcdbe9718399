"""Retrieval-augmented context for a job: similar scopes, materials, contractors."""
from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from ftw_ai.config import ProviderConfig, get_config
from ftw_ai.embeddings import embed_text
from ftw_ai.log import get_logger
from ftw_ai.models import RAGContext, RetrievedDocument
from ftw_ai.providers import vector_query

log = get_logger(__name__)

EMPTY_CONTEXT = RAGContext()

SCOPES_TOP_K = 5
MATERIALS_TOP_K = 10
CONTRACTORS_TOP_K = 8


def _to_document(match: dict[str, Any]) -> RetrievedDocument:
    metadata = match.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    score = match.get("score") or match.get("similarity") or 0
    return RetrievedDocument(
        id=match.get("id"),
        title=metadata.get("title"),
        content=str(metadata.get("content") or match.get("value") or ""),
        metadata=metadata,
        score=float(score) if isinstance(score, (int, float)) else 0.0,
    )


def _query(
    config: ProviderConfig,
    index: str,
    vector: list[float],
    top_k: int,
    filter: dict[str, Any] | None = None,
) -> tuple[RetrievedDocument, ...]:
    """One similarity search; failures degrade to an empty result."""
    if not config.vector.configured:
        return ()
    try:
        matches = vector_query(config.vector, index, vector, top_k, filter, http=config.http)
    except Exception as exc:
        log.warning("Vector query %r fallback: %s", index, exc)
        return ()
    log.debug("Vector index %r returned %d matches", index, len(matches))
    return tuple(_to_document(m) for m in matches)


def _numeric(docs: tuple[RetrievedDocument, ...], *keys: str) -> list[float]:
    values: list[float] = []
    for doc in docs:
        for key in keys:
            v = doc.metadata.get(key)
            if v:
                if isinstance(v, (int, float)) and not isinstance(v, bool):
                    values.append(float(v))
                break
    return values


def compute_average_price(scopes: tuple[RetrievedDocument, ...]) -> int | None:
    prices = _numeric(scopes, "finalPrice", "price")
    if not prices:
        return None
    return int(math.floor(sum(prices) / len(prices) + 0.5))


def compute_typical_timeframe(scopes: tuple[RetrievedDocument, ...]) -> str | None:
    durations = _numeric(scopes, "durationDays", "duration")
    if not durations:
        return None
    avg = sum(durations) / len(durations)
    if avg < 1:
        return "<1 day"
    if avg < 3:
        return "1-3 days"
    if avg < 7:
        return "3-7 days"
    return f"{int(math.floor(avg + 0.5))} days"


def get_job_context(description: str, config: ProviderConfig | None = None) -> RAGContext:
    config = config or get_config()
    if not config.switches.rag:
        return EMPTY_CONTEXT

    embedding = embed_text(description, config).embedding
    if not embedding:
        return EMPTY_CONTEXT

    v = config.vector
    with ThreadPoolExecutor(max_workers=3) as pool:
        scopes_f = pool.submit(
            _query, config, v.index_scopes, embedding, SCOPES_TOP_K, {"status": "completed"}
        )
        materials_f = pool.submit(_query, config, v.index_materials, embedding, MATERIALS_TOP_K)
        contractors_f = pool.submit(
            _query, config, v.index_contractors, embedding, CONTRACTORS_TOP_K
        )
        scopes = scopes_f.result()
        materials = materials_f.result()
        contractors = contractors_f.result()

    return RAGContext(
        similar_scopes=scopes,
        material_pricing=materials,
        suggested_contractors=contractors,
        average_price=compute_average_price(scopes),
        typical_timeframe=compute_typical_timeframe(scopes),
    )


def _doc_line(doc: RetrievedDocument, limit: int = 200) -> str:
    label = doc.title or doc.id or "item"
    text = " ".join(doc.content.split())[:limit]
    return f"- {label} (similarity {doc.score:.2f}): {text}" if text else f"- {label} (similarity {doc.score:.2f})"


def format_context(context: RAGContext) -> str:
    """Render retrieved context as prompt text; empty string when nothing was found."""
    if context.empty:
        return ""
    parts: list[str] = []
    if context.similar_scopes:
        parts.append("Similar completed jobs:")
        parts.extend(_doc_line(d) for d in context.similar_scopes)
    if context.average_price is not None:
        parts.append(f"Average final price of similar jobs: ${context.average_price}")
    if context.typical_timeframe:
        parts.append(f"Typical timeframe: {context.typical_timeframe}")
    if context.material_pricing:
        parts.append("Material pricing references:")
        parts.extend(_doc_line(d, 120) for d in context.material_pricing)
    if context.suggested_contractors:
        parts.append("Contractors who handle similar work:")
        parts.extend(_doc_line(d, 80) for d in context.suggested_contractors)
    return "\n".join(parts)
