"""Analysis module for daily suggestion computation."""

from .history import HistoryAggregator, HistoryWindows
from .fatigue import FatigueScorer, FatigueAssessment
from .balance import CategoryBalancer, BalanceDecision
from .suggestion import SuggestionComposer, Suggestion, Rationale, validate_user_id

__all__ = [
    "HistoryAggregator",
    "HistoryWindows",
    "FatigueScorer",
    "FatigueAssessment",
    "CategoryBalancer",
    "BalanceDecision",
    "SuggestionComposer",
    "Suggestion",
    "Rationale",
    "validate_user_id",
]
