from unittest.mock import patch

from ftw_ai.crm import calculate_optimal_time, determine_channel, generate_follow_up
from ftw_ai.crm.follow_up import build_follow_up_prompt, generate_follow_up_outcome
from ftw_ai.models import ConversationAnalysis, ConversationContext, Message

NEGATIVE = '{"overallSentiment": "negative", "trend": "declining", "warningFlags": ["price"]}'


def _context(**overrides):
    values = dict(
        messages=[Message(content="Still thinking about it", sender="customer")],
        job_type="deck repair",
        last_message="Still thinking about it",
        days_since_contact=2,
        quote_given=True,
        quote_amount=1200,
    )
    values.update(overrides)
    return ConversationContext(**values)


def test_optimal_time_depends_on_days_since_contact():
    assert calculate_optimal_time(_context(days_since_contact=6)) == "tomorrow 9am local"
    assert calculate_optimal_time(_context(days_since_contact=5)) == "today 5pm local"
    assert calculate_optimal_time(_context(days_since_contact=None)) == "today 5pm local"


def test_channel_is_email():
    assert determine_channel() == "email"


def test_prompt_includes_quote_and_concerns():
    analysis = ConversationAnalysis(overall_sentiment="negative", warning_flags=["price"])
    prompt = build_follow_up_prompt("Dana", _context(), analysis)
    assert "Customer: Dana" in prompt
    assert "Quote given: $1200" in prompt
    assert "Main concern: price" in prompt


def test_prompt_without_quote():
    prompt = build_follow_up_prompt(None, _context(quote_given=False), ConversationAnalysis())
    assert "Customer: there" in prompt
    assert "Quote given: not yet" in prompt


def test_model_draft_is_used(config):
    responses = [NEGATIVE, "Hi Dana, happy to revisit the deck quote."]
    with patch("ftw_ai.crm.background.chat_completion", side_effect=responses) as chat:
        outcome = generate_follow_up_outcome(_context(), "Dana", config)

    assert chat.call_count == 2
    assert outcome.status == "ok"
    assert outcome.value.content == "Hi Dana, happy to revisit the deck quote."
    assert outcome.value.channel == "email"
    assert outcome.value.scheduled_for == "today 5pm local"
    assert chat.call_args.kwargs["max_tokens"] == 200
    assert chat.call_args.kwargs["temperature"] == 0.35


def test_empty_draft_uses_template(config):
    with patch("ftw_ai.crm.background.chat_completion", side_effect=[NEGATIVE, ""]):
        outcome = generate_follow_up_outcome(_context(), "Dana", config)

    assert outcome.degraded
    assert outcome.value.content == (
        "Hi Dana, following up on your deck repair. Happy to answer questions or adjust "
        "the estimate. I want to make sure we address any concerns."
    )


def test_unconfigured_background_uses_template(offline_config):
    message = generate_follow_up(_context(job_type=None, days_since_contact=9), None, offline_config)
    assert message.content == (
        "Hi, following up on your project. Happy to answer questions or adjust the estimate."
    )
    assert message.scheduled_for == "tomorrow 9am local"
