"""Score how likely a lead is to convert."""
from __future__ import annotations

from ftw_ai.config import ProviderConfig, Weights, get_config, get_weights
from ftw_ai.crm.background import background_available, call_background_llm
from ftw_ai.log import get_logger
from ftw_ai.models import LeadScore, LeadSignals, Outcome
from ftw_ai.parsing import clamp_number, extract_json_object

log = get_logger(__name__)

LIKELIHOODS = ("hot", "warm", "cold")


def _listed(values: list[str]) -> str:
    return ", ".join(values) or "none"


def build_lead_prompt(signals: LeadSignals) -> str:
    response = signals.response_time_ms if signals.response_time_ms is not None else "n/a"
    conversion = signals.historical_conversion if signals.historical_conversion is not None else "n/a"
    return f"""Analyze this lead for a home services contractor. Return JSON only.
Signals:
- Response time (ms): {response}
- Messages exchanged: {signals.message_count}
- Viewed estimate: {str(bool(signals.viewed_estimate)).lower()}
- Mentioned competitors: {_listed(signals.competitor_mentions)}
- Urgency indicators: {_listed(signals.urgency_keywords)}
- Budget indicators: {_listed(signals.budget_signals)}
- Contractor historical close rate: {conversion}%

Return JSON:
{{"score":0-100,"likelihood":"hot|warm|cold","reasoning":"...","suggestedAction":"...","optimalContactTime":"..."}}"""


def fallback_score(signals: LeadSignals, weights: Weights | None = None) -> LeadScore:
    """Heuristic score: baseline, bumped when the lead responded quickly."""
    w = (weights or get_weights()).lead
    score = w.baseline
    if signals.response_time_ms and signals.response_time_ms < w.fast_response_ms:
        score += w.fast_response_bonus
    score = clamp_number(score, 0, 100, w.baseline)
    if score >= w.hot_threshold:
        likelihood = "hot"
    elif score >= w.warm_threshold:
        likelihood = "warm"
    else:
        likelihood = "cold"
    return LeadScore(
        score=score,
        likelihood=likelihood,
        reasoning="Heuristic fallback score",
        suggested_action="Respond within 24h with a tailored note",
    )


def parse_lead_score(text: str) -> LeadScore | None:
    data = extract_json_object(text)
    if data is None:
        return None
    likelihood = str(data.get("likelihood") or "warm").lower()
    contact_time = data.get("optimalContactTime")
    return LeadScore(
        score=clamp_number(data.get("score", 50), 0, 100, 50),
        likelihood=likelihood if likelihood in LIKELIHOODS else "warm",
        reasoning=str(data.get("reasoning") or "No reasoning provided"),
        suggested_action=str(data.get("suggestedAction") or "Follow up within 24h"),
        optimal_contact_time=str(contact_time) if contact_time else None,
    )


def score_lead_outcome(
    signals: LeadSignals,
    config: ProviderConfig | None = None,
    weights: Weights | None = None,
) -> Outcome[LeadScore]:
    config = config or get_config()
    if not background_available(config):
        return Outcome(fallback_score(signals, weights), "fallback", "background provider unavailable")

    try:
        response = call_background_llm(
            build_lead_prompt(signals), max_tokens=300, temperature=0.2, config=config
        )
        parsed = parse_lead_score(response)
        if parsed is None:
            raise ValueError("no JSON object in lead score response")
    except Exception as exc:
        log.warning("score_lead fallback: %s", exc)
        return Outcome(fallback_score(signals, weights), "fallback", str(exc))
    return Outcome(parsed, "ok", config.background.model)


def score_lead(signals: LeadSignals, config: ProviderConfig | None = None) -> LeadScore:
    return score_lead_outcome(signals, config).value
