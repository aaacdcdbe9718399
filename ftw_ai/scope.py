"""Two-tier job scoping.

Simple jobs go to the cheap quick model with a labelled-line prompt;
complex, multi-trade or flagged jobs go to the detailed model with a JSON
prompt. Both prompts carry the retrieved RAG context. Claude answers first;
the OpenAI-compatible fallback provider answers when Claude cannot.
"""
from __future__ import annotations

import re

from ftw_ai.classifier import classify_job, detect_spam_score
from ftw_ai.config import ProviderConfig, get_config
from ftw_ai.log import get_logger
from ftw_ai.models import JobClassification, JobData, RAGContext, ScopeResult
from ftw_ai.parsing import clamp_number, extract_json_object, string_list
from ftw_ai.providers import anthropic_message, chat_completion
from ftw_ai.rag import format_context, get_job_context

log = get_logger(__name__)

QUICK = "quick"
DETAILED = "detailed"

QUICK_MAX_TOKENS = 500
FALLBACK_MODELS: dict[str, str] = {QUICK: "gpt-4o-mini", DETAILED: "gpt-4o"}
COMPLEX_INTENTS = ("multi_trade", "major_project")


class ScopeUnavailableError(RuntimeError):
    """Neither Claude nor the fallback provider produced a scope."""


# ── Tier selection ───────────────────────────────────────────────────────


def is_simple_job(job: JobData) -> bool:
    return (
        len(job.description or "") < 200
        and not job.multi_trade
        and not job.is_major_project
        and len(job.photos or []) < 3
    )


def select_tier(job: JobData, classification: JobClassification) -> str:
    flagged = classification.requires_sonnet or classification.intent in COMPLEX_INTENTS
    if not flagged and is_simple_job(job):
        return QUICK
    return DETAILED


# ── Prompts ──────────────────────────────────────────────────────────────


def _context_block(context: RAGContext) -> str:
    text = format_context(context)
    return f"\nReference data from past jobs:\n{text}\n" if text else ""


def build_quick_prompt(job: JobData, context: RAGContext) -> str:
    return f"""QUICK SCOPE
Job: {job.title or 'Untitled Job'}
Details: {job.description or 'No description provided'}
Photos: {len(job.photos or [])}
{_context_block(context)}
Respond in exactly this format:
SCOPE: [2 sentences]
PRICE: $XXX-$XXX
MATERIALS: item1, item2, item3
TIME: X days

Guidelines:
- Prices realistic for Texas (labor $50-100/hr, materials at cost+25%)
- Include 3-6 key materials
- Keep scope professional and specific"""


def build_detailed_prompt(job: JobData, context: RAGContext) -> str:
    transcript = f"Audio transcript: {job.audio_transcript}\n" if job.audio_transcript else ""
    return f"""DETAILED SCOPE
Job: {job.title or 'Untitled Job'}
Details: {job.description or 'No description provided'}
Photos: {len(job.photos or [])}
Multi-trade: {'YES' if job.multi_trade else 'NO'}
Major project: {'YES' if job.is_major_project else 'NO'}
{transcript}{_context_block(context)}
Provide comprehensive scope with:
1. Detailed work breakdown
2. Precise price range
3. Complete materials list
4. Timeline with milestones
5. Special considerations

Respond in JSON format:
{{
  "scope": "Detailed description of work",
  "priceLow": <number>,
  "priceHigh": <number>,
  "materials": ["item1", "item2", ...],
  "time": "X days with milestones"
}}"""


# ── Response parsing ─────────────────────────────────────────────────────

_SCOPE_RE = re.compile(r"SCOPE:\s*(.+?)(?=PRICE:|$)", re.DOTALL)
_PRICE_RE = re.compile(r"PRICE:\s*\$?\s*([\d,]+)(?:\s*-\s*\$?\s*([\d,]+))?")
_MATERIALS_RE = re.compile(r"MATERIALS:\s*(.+?)(?=TIME:|$)", re.DOTALL)
_TIME_RE = re.compile(r"TIME:\s*(.+?)(?:\n|$)")


def _amount(raw: str | None) -> float | None:
    if not raw:
        return None
    digits = raw.replace(",", "")
    return float(digits) if digits else None


def _ordered(result: ScopeResult) -> ScopeResult:
    if result.price_high < result.price_low:
        log.warning(
            "Model returned reversed price range %s-%s; swapping",
            result.price_low, result.price_high,
        )
        result.price_low, result.price_high = result.price_high, result.price_low
    return result


def parse_quick_response(text: str, model: str) -> ScopeResult:
    scope_m = _SCOPE_RE.search(text)
    price_m = _PRICE_RE.search(text)
    materials_m = _MATERIALS_RE.search(text)
    time_m = _TIME_RE.search(text)

    low = _amount(price_m.group(1)) if price_m else None
    high = _amount(price_m.group(2)) if price_m else None
    if high is None:
        high = low * 1.5 if low is not None else 200.0

    materials = []
    if materials_m:
        materials = [m.strip() for m in materials_m.group(1).split(",") if m.strip()]

    return _ordered(ScopeResult(
        scope=(scope_m.group(1).strip() if scope_m else "") or "Standard job scope based on description.",
        price_low=low if low is not None else 100.0,
        price_high=high,
        materials=materials or ["Standard materials"],
        time=(time_m.group(1).strip() if time_m else "") or "1-2 days",
        model=model,
        tier=QUICK,
    ))


def parse_detailed_response(text: str, model: str) -> ScopeResult:
    data = extract_json_object(text)
    if data is not None:
        return _ordered(ScopeResult(
            scope=str(data.get("scope") or "Comprehensive project scope."),
            price_low=clamp_number(data.get("priceLow"), 0, float("inf"), 0) or 500.0,
            price_high=clamp_number(data.get("priceHigh"), 0, float("inf"), 0) or 1000.0,
            materials=string_list(data.get("materials"), ["Project materials"]),
            time=str(data.get("time") or "5-10 days"),
            model=model,
            tier=DETAILED,
        ))

    log.warning("Detailed scope response was not JSON; using raw text")
    return ScopeResult(
        scope=text[:500] or "Detailed project scope based on requirements.",
        price_low=500.0,
        price_high=2000.0,
        materials=["Project-specific materials"],
        time="5-10 days",
        model=model,
        tier=DETAILED,
    )


# ── Generation ───────────────────────────────────────────────────────────


def _generate(prompt: str, tier: str, config: ProviderConfig) -> tuple[str, str]:
    """Return (text, model) from Claude, else from the fallback provider."""
    scoping = config.scoping
    model = scoping.quick_model if tier == QUICK else scoping.model
    max_tokens = min(QUICK_MAX_TOKENS, scoping.max_tokens) if tier == QUICK else scoping.max_tokens

    if scoping.api_key:
        try:
            return anthropic_message(
                scoping.api_key, model, prompt, max_tokens=max_tokens, http=config.http
            ), model
        except Exception as exc:
            log.warning("Claude %s scope call failed (%s), trying fallback provider", model, exc)

    fallback = config.fallback
    if fallback.api_key:
        fallback_model = FALLBACK_MODELS[tier]
        try:
            text = chat_completion(
                fallback,
                prompt,
                max_tokens=max_tokens,
                temperature=0.3 if tier == QUICK else 0.7,
                http=config.http,
                model=fallback_model,
            )
            return text, fallback_model
        except Exception as exc:
            log.error("Fallback %s scope call failed: %s", fallback_model, exc)

    raise ScopeUnavailableError("AI service not available")


def get_job_scope(
    job: JobData,
    config: ProviderConfig | None = None,
    classification: JobClassification | None = None,
) -> ScopeResult:
    """Scope a job on the cheapest tier that fits it.

    Pass *classification* when the caller already classified the job.
    Raises ScopeUnavailableError when no provider can answer.
    """
    config = config or get_config()
    description = job.description or ""

    if classification is None:
        classification = classify_job(description, config)
    spam_score = detect_spam_score(description)
    context = get_job_context(description, config)
    tier = select_tier(job, classification)
    log.info(
        "Scoping %r on %s tier (intent=%s, spam=%.1f, %d similar jobs)",
        job.title or description[:40], tier, classification.intent, spam_score,
        len(context.similar_scopes),
    )

    if tier == QUICK:
        text, model = _generate(build_quick_prompt(job, context), tier, config)
        result = parse_quick_response(text, model)
    else:
        text, model = _generate(build_detailed_prompt(job, context), tier, config)
        result = parse_detailed_response(text, model)

    result.spam_score = spam_score
    return result
