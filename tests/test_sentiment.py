from unittest.mock import patch

from ftw_ai.crm import analyze_conversation
from ftw_ai.crm.sentiment import (
    analyze_conversation_outcome,
    build_sentiment_prompt,
    parse_conversation_analysis,
)
from ftw_ai.models import Message
from ftw_ai.providers import ProviderError

MESSAGES = [
    Message(content="Hi, can you fix my deck?", sender="customer"),
    Message(content="Sure, $1,200 for the repair.", sender="contractor"),
    Message(content="That's more than the other quote I got.", sender="customer"),
]


def test_prompt_uses_last_fifteen_messages():
    messages = [Message(content=f"msg {i}", sender="customer") for i in range(20)]
    prompt = build_sentiment_prompt(messages)
    assert "msg 4" not in prompt
    assert "msg 5" in prompt
    assert "customer: msg 19" in prompt


def test_parse_normalizes_unknown_values():
    result = parse_conversation_analysis('{"overallSentiment": "ecstatic", "trend": "sideways", "warningFlags": ["price"]}')
    assert result.overall_sentiment == "neutral"
    assert result.trend == "stable"
    assert result.warning_flags == ["price"]
    assert result.key_moments == []
    assert result.suggested_response is None


def test_model_analysis_is_returned(config):
    raw = """{"overallSentiment": "negative", "trend": "declining",
    "warningFlags": ["competitor quote"], "keyMoments": ["price objection"],
    "suggestedResponse": "Offer to walk through the estimate."}"""
    with patch("ftw_ai.crm.background.chat_completion", return_value=raw) as chat:
        outcome = analyze_conversation_outcome(MESSAGES, config)

    assert outcome.status == "ok"
    assert outcome.value.overall_sentiment == "negative"
    assert outcome.value.trend == "declining"
    assert outcome.value.suggested_response == "Offer to walk through the estimate."
    assert chat.call_args.kwargs["max_tokens"] == 250


def test_provider_error_returns_neutral(config):
    with patch("ftw_ai.crm.background.chat_completion", side_effect=ProviderError("timeout")):
        outcome = analyze_conversation_outcome(MESSAGES, config)

    assert outcome.degraded
    assert outcome.value.overall_sentiment == "neutral"
    assert outcome.value.trend == "stable"
    assert outcome.value.warning_flags == []


def test_unconfigured_background_returns_neutral(offline_config):
    result = analyze_conversation(MESSAGES, offline_config)
    assert result.overall_sentiment == "neutral"
