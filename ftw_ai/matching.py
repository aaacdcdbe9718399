"""Rank contractors for a job by semantic similarity plus track-record signals."""
from __future__ import annotations

import math
from typing import Any

from ftw_ai.config import ProviderConfig, Weights, get_config, get_weights
from ftw_ai.embeddings import embed_text
from ftw_ai.log import get_logger
from ftw_ai.models import ContractorMatch, ContractorQuery
from ftw_ai.providers import vector_query

log = get_logger(__name__)

CONTRACTORS_TOP_K = 20


def _unit(value: Any, max_value: float = 1.0) -> float:
    """Scale *value* by *max_value* and clamp to [0, 1]; non-numbers score 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value) or max_value <= 0:
        return 0.0
    return max(0.0, min(1.0, value / max_value))


def derive_specialty_match(description: str, specialty: str | None) -> float:
    if not specialty:
        return 0.0
    return 1.0 if specialty.lower() in description.lower() else 0.3


def calculate_composite_score(
    *,
    semantic_similarity: float | None = None,
    review_score: float | None = None,
    response_time: float | None = None,
    completion_rate: float | None = None,
    specialty_match: float | None = None,
    availability: float | None = None,
    weights: Weights | None = None,
) -> float:
    """Weighted blend of normalised signals; stays within [0, 1] with default weights.

    response_time is in milliseconds and decays linearly to 0 over an hour.
    """
    w = (weights or get_weights()).matching
    speed = 0.0
    if response_time:
        speed = max(0.0, 1 - _unit(response_time, w.response_decay_ms))
    return (
        _unit(semantic_similarity) * w.similarity
        + _unit(review_score, w.review_max) * w.review
        + _unit(completion_rate) * w.completion
        + speed * w.response
        + _unit(specialty_match) * w.specialty
        + _unit(availability) * w.availability
    )


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _to_match(raw: dict[str, Any], description: str, weights: Weights | None) -> ContractorMatch:
    metadata = raw.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    # Backends report either "score" or "similarity", as in rag._to_document
    similarity = _number(raw.get("score") or raw.get("similarity")) or 0.0
    specialty = derive_specialty_match(description, metadata.get("specialty"))
    match = ContractorMatch(
        contractor_id=raw.get("id"),
        score=0.0,
        semantic_similarity=similarity,
        review_score=_number(metadata.get("avgRating")),
        response_time=_number(metadata.get("avgResponseTime")),
        completion_rate=_number(metadata.get("completionRate")),
        specialty_match=specialty,
        availability=_number(metadata.get("availabilityScore")),
        metadata=metadata,
    )
    match.score = calculate_composite_score(
        semantic_similarity=match.semantic_similarity,
        review_score=match.review_score,
        response_time=match.response_time,
        completion_rate=match.completion_rate,
        specialty_match=match.specialty_match,
        availability=match.availability,
        weights=weights,
    )
    return match


def find_best_contractors(
    job: ContractorQuery,
    config: ProviderConfig | None = None,
    weights: Weights | None = None,
) -> list[ContractorMatch]:
    config = config or get_config()
    if not (config.switches.matching and config.switches.rag):
        return []
    if not config.vector.configured:
        return []

    embedding = embed_text(f"{job.title or ''} {job.description}", config).embedding
    if not embedding:
        return []

    filter: dict[str, Any] = {"isActive": True}
    if job.zip_code:
        filter["servicesZip"] = job.zip_code

    try:
        raw_matches = vector_query(
            config.vector,
            config.vector.index_contractors,
            embedding,
            CONTRACTORS_TOP_K,
            filter,
            http=config.http,
        )
    except Exception as exc:
        log.warning("Contractor query fallback: %s", exc)
        return []

    matches = [_to_match(m, job.description, weights) for m in raw_matches]
    matches.sort(key=lambda m: -m.score)
    log.info("Ranked %d contractors for %r", len(matches), job.title or job.description[:40])
    return matches
