"""
Journey Package

Lead-qualification journey: state records, scoring, gating,
recommendations and persistence. The orchestrator lives in
pension_engine.journey.orchestrator.
"""

from .gate import GATE_FIELDS, check_gate
from .models import (
    FinancialGoals,
    FinancialSnapshot,
    GateDecision,
    JourneyCalculatorResult,
    JourneyEvent,
    LeadSubmission,
    RecommendedAction,
    ResultSummary,
    UserJourneyState,
    UserProfile,
)
from .recommendations import get_recommended_next_action
from .scoring import (
    calculate_journey_progress,
    calculate_lead_score,
    calculate_lead_temperature,
    calculate_qualification_tier,
)
from .store import AnalyticsLog, InMemoryStorage, JourneyStateStore, JsonFileStorage, LeadLog

__all__ = [
    "UserProfile",
    "ResultSummary",
    "JourneyCalculatorResult",
    "FinancialGoals",
    "FinancialSnapshot",
    "UserJourneyState",
    "JourneyEvent",
    "LeadSubmission",
    "RecommendedAction",
    "GateDecision",
    "GATE_FIELDS",
    "check_gate",
    "get_recommended_next_action",
    "calculate_lead_score",
    "calculate_lead_temperature",
    "calculate_qualification_tier",
    "calculate_journey_progress",
    "JourneyStateStore",
    "InMemoryStorage",
    "JsonFileStorage",
    "AnalyticsLog",
    "LeadLog",
]
