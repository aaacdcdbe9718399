from .follow_up import calculate_optimal_time, determine_channel, generate_follow_up
from .lead_scoring import score_lead
from .sentiment import analyze_conversation

__all__ = [
    "analyze_conversation", "calculate_optimal_time", "determine_channel",
    "generate_follow_up", "score_lead",
]
