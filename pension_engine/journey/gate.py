"""
Gate Decision Engine

Decides whether to interrupt the visitor with a data-capture gate, and at
which tier. Rules are evaluated top-down and the first match wins, so a
higher tier always takes precedence over a lower one.
"""

from decimal import Decimal

from .models import GateDecision, UserJourneyState

# Fields each gate tier asks for, and whether the visitor may skip it
GATE_FIELDS = {
    1: (('email',), False),
    2: (('email', 'name', 'age'), True),
    3: (('email', 'name', 'phone', 'best_time_to_call'), True),
    4: (('email', 'name', 'phone', 'best_time_to_call', 'urgency'), False),
}

HIGH_VALUE_GAP = Decimal('50000')
HIGH_VALUE_POT = Decimal('100000')
ENGAGED_GAP = Decimal('10000')


def _decision(should_show: bool, tier: int, reason: str, context: dict) -> GateDecision:
    required_fields, skippable = GATE_FIELDS[tier]
    return GateDecision(
        should_show_gate=should_show,
        tier=tier,
        reason=reason,
        context=context,
        required_fields=required_fields,
        skippable=skippable,
    )


def check_gate(state: UserJourneyState) -> GateDecision:
    profile = state.profile
    snapshot = state.financial_snapshot
    completed = state.completed_calculators

    if profile.phone and (state.has_requested_consultation
                          or snapshot.gap > HIGH_VALUE_GAP
                          or snapshot.pot > HIGH_VALUE_POT):
        return _decision(
            not profile.urgency, 4, 'high_value_lead',
            {'pensionGap': snapshot.pension_gap, 'totalPot': snapshot.total_current_pot},
        )

    if profile.email and profile.name and (state.has_requested_consultation
                                           or completed >= 4
                                           or snapshot.gap > ENGAGED_GAP):
        return _decision(
            not profile.phone, 3, 'consultation_or_high_engagement',
            {'completedCalculators': completed},
        )

    if profile.email and (completed >= 3 or state.has_downloaded_pdf):
        return _decision(
            not (profile.name and profile.age), 2, 'enhanced_engagement',
            {'completedCalculators': completed},
        )

    if completed >= 1:
        return _decision(
            not profile.email, 1, 'first_calculation_complete',
            {'completedCalculators': completed},
        )

    return _decision(False, 1, 'no_trigger', {})
