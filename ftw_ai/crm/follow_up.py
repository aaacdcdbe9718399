"""Draft follow-up messages for quiet leads."""
from __future__ import annotations

from ftw_ai.config import ProviderConfig, get_config
from ftw_ai.crm.background import background_available, call_background_llm
from ftw_ai.crm.sentiment import analyze_conversation
from ftw_ai.log import get_logger
from ftw_ai.models import ConversationAnalysis, ConversationContext, FollowUpMessage, Outcome

log = get_logger(__name__)


def calculate_optimal_time(context: ConversationContext) -> str:
    if (context.days_since_contact or 0) > 5:
        return "tomorrow 9am local"
    return "today 5pm local"


def determine_channel() -> str:
    return "email"


def build_follow_up_prompt(
    first_name: str | None,
    context: ConversationContext,
    analysis: ConversationAnalysis,
) -> str:
    days = context.days_since_contact if context.days_since_contact is not None else "N/A"
    if context.quote_given:
        amount = context.quote_amount if context.quote_amount is not None else "n/a"
        quote = f"${amount}"
    else:
        quote = "not yet"
    return f"""Write a concise follow-up message for a contractor to send to a potential customer.

Customer: {first_name or 'there'}
Job type: {context.job_type or 'general'}
Last message: {context.last_message or 'N/A'}
Days since contact: {days}
Sentiment trend: {analysis.trend}
Overall sentiment: {analysis.overall_sentiment}
Quote given: {quote}
Main concern: {', '.join(analysis.warning_flags) or 'unknown'}

Rules:
- Be warm and specific.
- Reference something from the conversation.
- If price/competitor mentioned, address subtly.
- Keep under 100 words.
- Human tone, no emoji.

Return only the message text."""


def fallback_follow_up(
    first_name: str | None,
    context: ConversationContext,
    analysis: ConversationAnalysis,
) -> FollowUpMessage:
    name = f" {first_name}" if first_name else ""
    concern = ""
    if analysis.overall_sentiment == "negative":
        concern = " I want to make sure we address any concerns."
    return FollowUpMessage(
        content=(
            f"Hi{name}, following up on your {context.job_type or 'project'}. "
            f"Happy to answer questions or adjust the estimate.{concern}"
        ),
        scheduled_for=calculate_optimal_time(context),
        channel=determine_channel(),
    )


def generate_follow_up_outcome(
    context: ConversationContext,
    first_name: str | None = None,
    config: ProviderConfig | None = None,
) -> Outcome[FollowUpMessage]:
    config = config or get_config()
    analysis = analyze_conversation(context.messages, config)

    if not background_available(config):
        return Outcome(
            fallback_follow_up(first_name, context, analysis),
            "fallback",
            "background provider unavailable",
        )

    try:
        draft = call_background_llm(
            build_follow_up_prompt(first_name, context, analysis),
            max_tokens=200,
            temperature=0.35,
            config=config,
        )
    except Exception as exc:
        log.warning("generate_follow_up fallback: %s", exc)
        return Outcome(fallback_follow_up(first_name, context, analysis), "fallback", str(exc))

    if not draft:
        return Outcome(fallback_follow_up(first_name, context, analysis), "fallback", "empty draft")
    return Outcome(
        FollowUpMessage(
            content=draft,
            scheduled_for=calculate_optimal_time(context),
            channel=determine_channel(),
        ),
        "ok",
        config.background.model,
    )


def generate_follow_up(
    context: ConversationContext,
    first_name: str | None = None,
    config: ProviderConfig | None = None,
) -> FollowUpMessage:
    return generate_follow_up_outcome(context, first_name, config).value
