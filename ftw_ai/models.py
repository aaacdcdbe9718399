"""Data models for classification, scoping, CRM and matching results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")

JobIntent = Literal[
    "quick_fix", "standard", "major_project", "multi_trade", "inspection", "emergency"
]
JOB_INTENTS: tuple[str, ...] = (
    "quick_fix", "standard", "major_project", "multi_trade", "inspection", "emergency",
)

Likelihood = Literal["hot", "warm", "cold"]
Sentiment = Literal["positive", "neutral", "negative"]
Trend = Literal["improving", "declining", "stable"]
Channel = Literal["email", "sms", "in_app"]
Tier = Literal["quick", "detailed"]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """A result tagged with how it was produced: ``ok`` or ``fallback``."""

    value: T
    status: Literal["ok", "fallback"] = "ok"
    reason: str = ""

    @property
    def degraded(self) -> bool:
        return self.status == "fallback"


# ── Jobs ─────────────────────────────────────────────────────────────────


@dataclass
class JobClassification:
    intent: str = "standard"
    complexity: int = 50
    trades: list[str] = field(default_factory=lambda: ["general"])
    requires_sonnet: bool = False
    spam_score: float = 0.0
    reasoning: str = "fallback: default classification"


@dataclass
class JobData:
    title: str = ""
    description: str = ""
    photos: list[str] = field(default_factory=list)
    multi_trade: bool = False
    is_major_project: bool = False
    audio_transcript: str = ""


@dataclass
class ScopeResult:
    scope: str
    price_low: float
    price_high: float
    materials: list[str]
    time: str = ""
    model: str = ""
    tier: str = ""
    spam_score: float = 0.0


@dataclass
class ScopeEstimate:
    scope: str
    price_low: float
    price_high: float
    materials: list[str]
    confidence_score: float
    model: str
    cached: bool = False


# ── Retrieval ────────────────────────────────────────────────────────────


@dataclass
class EmbeddingResult:
    embedding: list[float]
    model: str

    @property
    def empty(self) -> bool:
        return not self.embedding


@dataclass(frozen=True)
class RetrievedDocument:
    id: str | None = None
    title: str | None = None
    content: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class RAGContext:
    similar_scopes: tuple[RetrievedDocument, ...] = ()
    material_pricing: tuple[RetrievedDocument, ...] = ()
    suggested_contractors: tuple[RetrievedDocument, ...] = ()
    average_price: int | None = None
    typical_timeframe: str | None = None

    @property
    def empty(self) -> bool:
        return not (self.similar_scopes or self.material_pricing or self.suggested_contractors)


# ── CRM ──────────────────────────────────────────────────────────────────


@dataclass
class LeadSignals:
    response_time_ms: float | None = None
    message_count: int = 0
    viewed_estimate: bool = False
    competitor_mentions: list[str] = field(default_factory=list)
    urgency_keywords: list[str] = field(default_factory=list)
    budget_signals: list[str] = field(default_factory=list)
    historical_conversion: float | None = None


@dataclass
class LeadScore:
    score: float
    likelihood: str
    reasoning: str
    suggested_action: str
    optimal_contact_time: str | None = None


@dataclass
class Message:
    content: str
    sender: str = "unknown"
    id: str | None = None
    timestamp: float | None = None


@dataclass
class ConversationAnalysis:
    overall_sentiment: str = "neutral"
    trend: str = "stable"
    warning_flags: list[str] = field(default_factory=list)
    key_moments: list[str] = field(default_factory=list)
    suggested_response: str | None = None


@dataclass
class ConversationContext:
    messages: list[Message] = field(default_factory=list)
    job_type: str | None = None
    last_message: str | None = None
    days_since_contact: int | None = None
    quote_given: bool = False
    quote_amount: float | None = None


@dataclass
class FollowUpMessage:
    content: str
    scheduled_for: str | None = None
    channel: str = "email"


# ── Matching ─────────────────────────────────────────────────────────────


@dataclass
class ContractorQuery:
    description: str
    title: str = ""
    zip_code: str | None = None
    preferred_date: str | None = None


@dataclass
class ContractorMatch:
    contractor_id: str | None
    score: float
    semantic_similarity: float = 0.0
    review_score: float | None = None
    response_time: float | None = None
    completion_rate: float | None = None
    specialty_match: float = 0.0
    availability: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
