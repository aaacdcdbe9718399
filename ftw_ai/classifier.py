"""Classify job descriptions by intent and complexity.

A hosted chat model does the classification; a keyword heuristic answers
whenever routing is switched off or the model call cannot be used.
"""
from __future__ import annotations

import re

from ftw_ai.cache import TTLCache, classification_cache
from ftw_ai.config import ProviderConfig, Weights, get_config, get_weights
from ftw_ai.log import get_logger
from ftw_ai.models import JOB_INTENTS, JobClassification, Outcome
from ftw_ai.parsing import clamp_number, extract_json_object, string_list
from ftw_ai.providers import chat_completion

log = get_logger(__name__)

EMERGENCY_KEYWORDS: list[str] = ["emergency", "urgent", "leak", "flood", "no power", "gas"]
MULTI_TRADE_KEYWORDS: list[str] = ["kitchen", "bathroom", "remodel", "addition"]
QUICK_FIX_MAX_CHARS = 180

_SPAM_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"https?://\S+", re.IGNORECASE),
    re.compile(r"\bfree\b", re.IGNORECASE),
    re.compile(r"\bcall\s+now\b", re.IGNORECASE),
    re.compile(r"(.)\1{4,}"),
]

_PROMPT = """Classify this home service job. Return JSON only.

Job: "{description}"
{language_hint}
Classify into: quick_fix, standard, major_project, multi_trade, inspection, emergency.
Return:
{{
  "intent": "quick_fix|standard|major_project|multi_trade|inspection|emergency",
  "complexity": 0-100,
  "trades": ["plumbing", "electrical", ...],
  "requiresSonnet": true|false,
  "reasoning": "one short sentence"
}}"""


def rule_based_classification(description: str) -> JobClassification:
    """Deterministic keyword classification used when the model is unavailable."""
    desc = (description or "").lower()
    if any(k in desc for k in EMERGENCY_KEYWORDS):
        return JobClassification(
            intent="emergency", complexity=80, requires_sonnet=True,
            reasoning="rule-based emergency",
        )
    if any(k in desc for k in MULTI_TRADE_KEYWORDS):
        return JobClassification(
            intent="multi_trade", complexity=75, requires_sonnet=True,
            reasoning="rule-based multi-trade",
        )
    if len(desc) < QUICK_FIX_MAX_CHARS:
        return JobClassification(
            intent="quick_fix", complexity=30, requires_sonnet=False,
            reasoning="rule-based quick fix",
        )
    return JobClassification()


def detect_spam_score(text: str, weights: Weights | None = None) -> float:
    """Additive 0–1 spam heuristic: fixed increment per pattern hit, capped at 1."""
    w = (weights or get_weights()).spam
    text = text or ""
    score = sum(w.pattern for p in _SPAM_PATTERNS if p.search(text))
    caps = sum(1 for c in text if "A" <= c <= "Z")
    if len(text) > w.caps_min_length and caps / max(len(text), 1) > w.caps_ratio:
        score += w.caps
    return min(1.0, round(score, 4))


def detect_language(text: str) -> str:
    has_latin = re.search(r"[a-zA-Z]", text or "") is not None
    has_cyrillic = re.search(r"[А-Яа-яЁё]", text or "") is not None
    return "en" if has_latin and not has_cyrillic else "other"


def normalize_intent(value: object) -> str:
    if not isinstance(value, str):
        return "standard"
    normalized = re.sub(r"[^a-z_]", "", value.lower())
    return normalized if normalized in JOB_INTENTS else "standard"


def build_classification_prompt(description: str) -> str:
    hint = ""
    if detect_language(description) != "en":
        hint = "The description may not be in English; classify it anyway.\n"
    return _PROMPT.format(description=description[:800], language_hint=hint)


def parse_classification(raw: str, original: str) -> JobClassification | None:
    """Model output → JobClassification, or None when no JSON object is present."""
    data = extract_json_object(raw)
    if data is None:
        return None

    intent = normalize_intent(data.get("intent"))
    complexity = int(round(clamp_number(data.get("complexity", 50), 0, 100, 50)))
    trades = string_list(data.get("trades"), ["general"])
    flagged = data.get("requiresSonnet", data.get("requires_sonnet", False))
    requires_sonnet = (
        flagged is True
        or str(flagged).lower() == "true"
        or intent == "emergency"
        or complexity > 70
        or len(trades) > 1
    )
    return JobClassification(
        intent=intent,
        complexity=complexity,
        trades=trades,
        requires_sonnet=requires_sonnet,
        spam_score=detect_spam_score(original),
        reasoning=str(data.get("reasoning") or "parsed classification"),
    )


def classify_job_outcome(
    description: str,
    config: ProviderConfig | None = None,
    cache: TTLCache | None = None,
) -> Outcome[JobClassification]:
    config = config or get_config()
    cache = classification_cache if cache is None else cache

    if not config.switches.routing:
        log.debug("Routing disabled, using rule-based classification")
        return Outcome(rule_based_classification(description), "fallback", "routing disabled")

    # Cached entries are whole Outcomes so a fallback stays tagged as one
    cached = cache.get(description)
    if cached is not None:
        return cached

    try:
        raw = chat_completion(
            config.routing,
            build_classification_prompt(description),
            max_tokens=200,
            temperature=0.1,
            http=config.http,
        )
        parsed = parse_classification(raw, description)
        if parsed is None:
            raise ValueError("no JSON object in classification response")
    except Exception as exc:
        log.warning("classify_job fallback due to error: %s", exc)
        outcome = Outcome(rule_based_classification(description), "fallback", str(exc))
        cache.set(description, outcome)
        return outcome

    log.info("Classified job as %s (complexity %d)", parsed.intent, parsed.complexity)
    outcome = Outcome(parsed, "ok", config.routing.model)
    cache.set(description, outcome)
    return outcome


def classify_job(description: str, config: ProviderConfig | None = None) -> JobClassification:
    return classify_job_outcome(description, config).value
