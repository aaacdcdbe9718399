"""Summarise the sentiment of a customer conversation."""
from __future__ import annotations

from ftw_ai.config import ProviderConfig, get_config
from ftw_ai.crm.background import background_available, call_background_llm
from ftw_ai.log import get_logger
from ftw_ai.models import ConversationAnalysis, Message, Outcome
from ftw_ai.parsing import extract_json_object, string_list

log = get_logger(__name__)

TRANSCRIPT_MESSAGES = 15


def build_sentiment_prompt(messages: list[Message]) -> str:
    transcript = "\n".join(
        f"{m.sender or 'unknown'}: {m.content}" for m in messages[-TRANSCRIPT_MESSAGES:]
    )
    return f"""Analyze this conversation and summarize sentiment. Return JSON only.

Messages:
{transcript}

Return JSON:
{{
  "overallSentiment": "positive|neutral|negative",
  "trend": "improving|declining|stable",
  "warningFlags": ["..."],
  "keyMoments": ["..."],
  "suggestedResponse": "short suggested message"
}}"""


def normalize_sentiment(value: object) -> str:
    return value if value in ("positive", "negative") else "neutral"


def normalize_trend(value: object) -> str:
    return value if value in ("improving", "declining") else "stable"


def parse_conversation_analysis(text: str) -> ConversationAnalysis | None:
    data = extract_json_object(text)
    if data is None:
        return None
    suggested = data.get("suggestedResponse")
    return ConversationAnalysis(
        overall_sentiment=normalize_sentiment(data.get("overallSentiment")),
        trend=normalize_trend(data.get("trend")),
        warning_flags=string_list(data.get("warningFlags")),
        key_moments=string_list(data.get("keyMoments")),
        suggested_response=str(suggested) if suggested else None,
    )


def analyze_conversation_outcome(
    messages: list[Message],
    config: ProviderConfig | None = None,
) -> Outcome[ConversationAnalysis]:
    config = config or get_config()
    if not background_available(config):
        return Outcome(ConversationAnalysis(), "fallback", "background provider unavailable")

    try:
        response = call_background_llm(
            build_sentiment_prompt(messages), max_tokens=250, temperature=0.3, config=config
        )
        parsed = parse_conversation_analysis(response)
        if parsed is None:
            raise ValueError("no JSON object in sentiment response")
    except Exception as exc:
        log.warning("analyze_conversation fallback: %s", exc)
        return Outcome(ConversationAnalysis(), "fallback", str(exc))
    return Outcome(parsed, "ok", config.background.model)


def analyze_conversation(
    messages: list[Message], config: ProviderConfig | None = None
) -> ConversationAnalysis:
    return analyze_conversation_outcome(messages, config).value
