"""
Lead Scoring

Pure functions ranking how valuable and sales-ready a visitor is.
None of them read or write storage.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .models import UserJourneyState

HALF = Decimal('0.5')


@dataclass(frozen=True)
class ScoringWeights:
    email: Decimal = Decimal('20')
    name: Decimal = Decimal('10')
    phone: Decimal = Decimal('20')
    age: Decimal = Decimal('5')
    income: Decimal = Decimal('10')
    calculators_completed: Decimal = Decimal('15')  # cap
    per_calculator: Decimal = Decimal('3')
    session_time: Decimal = Decimal('5')
    pension_gap: Decimal = Decimal('15')  # split across two thresholds
    current_pot: Decimal = Decimal('15')  # split across two thresholds
    consultation_requested: Decimal = Decimal('30')
    pdf_downloaded: Decimal = Decimal('10')


DEFAULT_WEIGHTS = ScoringWeights()

ENGAGED_SESSION_SECONDS = 300
GAP_THRESHOLDS = (Decimal('10000'), Decimal('50000'))
POT_THRESHOLDS = (Decimal('50000'), Decimal('200000'))

HOT_SCORE = 70
WARM_SCORE = 40
HOT_GAP = Decimal('50000')
HOT_POT = Decimal('200000')
TIER4_GAP = Decimal('50000')
TIER4_POT = Decimal('100000')


def calculate_lead_score(state: UserJourneyState, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Weighted sum of captured data, engagement and intent, clamped to 0-100."""
    profile = state.profile
    snapshot = state.financial_snapshot
    score = Decimal('0')

    # Contact information
    if profile.email:
        score += weights.email
    if profile.name:
        score += weights.name
    if profile.phone:
        score += weights.phone

    # Demographics
    if profile.age:
        score += weights.age
    if profile.income:
        score += weights.income

    # Engagement
    score += min(weights.calculators_completed, state.completed_calculators * weights.per_calculator)
    if state.total_session_time > ENGAGED_SESSION_SECONDS:
        score += weights.session_time

    # Financial indicators, half the weight per threshold crossed
    for threshold in GAP_THRESHOLDS:
        if snapshot.gap > threshold:
            score += weights.pension_gap * HALF
    for threshold in POT_THRESHOLDS:
        if snapshot.pot > threshold:
            score += weights.current_pot * HALF

    # High-intent actions
    if state.has_requested_consultation:
        score += weights.consultation_requested
    if state.has_downloaded_pdf:
        score += weights.pdf_downloaded

    clamped = max(Decimal('0'), min(Decimal('100'), score))
    return int(clamped.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def calculate_lead_temperature(state: UserJourneyState, score: int) -> str:
    snapshot = state.financial_snapshot

    if (score > HOT_SCORE
            or state.has_requested_consultation
            or snapshot.gap > HOT_GAP
            or snapshot.pot > HOT_POT
            or state.profile.urgency == 'high'):
        return 'hot'

    if score > WARM_SCORE or state.completed_calculators >= 3 or state.has_downloaded_pdf:
        return 'warm'

    return 'cold'


def calculate_qualification_tier(state: UserJourneyState) -> int:
    """Tier 1 (email or nothing) up to tier 4 (full contact details and high value)."""
    profile = state.profile
    snapshot = state.financial_snapshot
    has_contact = bool(profile.phone and profile.email and profile.name)

    if has_contact and (state.has_requested_consultation
                        or snapshot.gap > TIER4_GAP
                        or snapshot.pot > TIER4_POT):
        return 4
    if has_contact:
        return 3
    if profile.email and (profile.name or profile.age or profile.income or profile.income_range):
        return 2
    return 1


def calculate_journey_progress(state: UserJourneyState) -> int:
    profile = state.profile
    progress = 0

    if profile.email:
        progress += 20
    progress += min(60, state.completed_calculators * 15)
    if profile.name and profile.age:
        progress += 10
    if profile.phone:
        progress += 10

    return min(100, progress)
