"""
Recommendations

Rule tables choosing what the visitor should do next, plus the
personalised message and journey summary shown on the dashboard.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..models import CalculatorType
from .models import RecommendedAction, UserJourneyState

CALCULATOR_SEQUENCE = (
    CalculatorType.STATE_PENSION,
    CalculatorType.WORKPLACE_PENSION,
    CalculatorType.TAX_RELIEF,
    CalculatorType.PENSION_DRAWDOWN,
    CalculatorType.LUMP_SUM_TAX,
    CalculatorType.SIPP,
)

DISPLAY_NAMES = {
    CalculatorType.STATE_PENSION: 'State Pension',
    CalculatorType.WORKPLACE_PENSION: 'Workplace Pension',
    CalculatorType.TAX_RELIEF: 'Tax Relief',
    CalculatorType.PENSION_DRAWDOWN: 'Pension Drawdown',
    CalculatorType.ANNUITY: 'Annuity Income',
    CalculatorType.SIPP: 'SIPP',
    CalculatorType.LUMP_SUM_TAX: 'Lump Sum Tax',
    CalculatorType.DETAILED_ANALYSIS: 'Full Analysis',
}

CONSULTATION_GAP = Decimal('30000')
CONSULTATION_SAVING_RATE = Decimal('0.15')
HIGHER_RATE_INCOME = Decimal('50270')
LARGE_POT = Decimal('200000')
RETIREMENT_YEARS = 20


def _whole(value: Decimal) -> int:
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _gbp(value: Decimal) -> str:
    return f"£{_whole(value):,}"


def get_next_calculator_recommendation(state: UserJourneyState) -> Optional[CalculatorType]:
    """First calculator in the recommended sequence not yet completed."""
    for calculator in CALCULATOR_SEQUENCE:
        result = state.calculators.get(calculator)
        if result is None or not result.completed:
            return calculator
    return None


def get_recommended_next_action(state: UserJourneyState) -> RecommendedAction:
    snapshot = state.financial_snapshot
    completed = state.completed_calculators

    if snapshot.gap > CONSULTATION_GAP and state.profile.email and not state.has_requested_consultation:
        return RecommendedAction(
            type='consultation',
            priority='high',
            title='Speak to a Pension Specialist',
            description=(
                f"With a {_gbp(snapshot.gap)} pension gap, professional advice could save you thousands."
            ),
            cta='Book Free Consultation',
            reason='high_pension_gap',
            estimated_value=_whole(snapshot.gap * CONSULTATION_SAVING_RATE),
        )

    if completed < 3:
        next_calculator = get_next_calculator_recommendation(state)
        if next_calculator is not None:
            name = DISPLAY_NAMES[next_calculator]
            return RecommendedAction(
                type='calculator',
                priority='high',
                title=f"Calculate Your {name}",
                description='Complete your pension picture for better planning',
                cta=f"Calculate {name}",
                reason='journey_completion',
                link=f"/calculators/{next_calculator.value}",
            )

    if completed >= 3 and not state.has_completed_full_journey:
        return RecommendedAction(
            type='dashboard',
            priority='high',
            title='See Your Complete Pension Picture',
            description='View all your results in one comprehensive dashboard',
            cta='View Dashboard',
            reason='journey_completion',
            link='/dashboard',
        )

    if completed >= 1 and not state.has_downloaded_pdf:
        return RecommendedAction(
            type='download',
            priority='medium',
            title='Download Your Pension Report',
            description='Get a detailed PDF with all your calculations and recommendations',
            cta='Download Report',
            reason='value_add',
        )

    return RecommendedAction(
        type='calculator',
        priority='high',
        title='Start with Your State Pension',
        description='Check your state pension forecast in under 2 minutes',
        cta='Calculate State Pension',
        reason='journey_start',
        link=f"/calculators/{CalculatorType.STATE_PENSION.value}",
    )


def get_personalized_message(state: UserJourneyState) -> dict:
    """Headline message for the dashboard, keyed on the visitor's biggest issue."""
    gap = state.financial_snapshot.gap
    pot = state.financial_snapshot.pot

    if gap > CONSULTATION_GAP:
        return {
            "type": "warning",
            "title": f"You Have a {_gbp(gap)} Pension Gap",
            "message": (
                f"Based on your calculations, you're {_gbp(gap)} short of your retirement income goal. "
                f"This could cost you {_gbp(gap * RETIREMENT_YEARS)} over {RETIREMENT_YEARS} years."
            ),
            "cta": "Speak to a Specialist",
        }

    if pot > LARGE_POT:
        return {
            "type": "success",
            "title": f"Great Progress! {_gbp(pot)} Saved",
            "message": (
                f"With {_gbp(pot)} already saved, you might benefit from fee optimization, "
                f"better investment options, and tax-efficient withdrawal planning."
            ),
            "cta": "Get Portfolio Review",
        }

    if (state.profile.income or 0) > HIGHER_RATE_INCOME:
        return {
            "type": "info",
            "title": "You Could Save £12,000+ This Year",
            "message": (
                "As a 40% taxpayer, every £100 you contribute gets £67 tax relief, "
                "plus potential employer matching."
            ),
            "cta": "Optimize Tax Relief",
        }

    return {
        "type": "info",
        "title": "You're Building Your Pension Picture",
        "message": "Complete more calculators to get personalized recommendations and optimize your retirement plan.",
    }


def get_journey_summary(state: UserJourneyState) -> dict:
    """Rough income estimate, gap, completion, outstanding steps and urgency."""
    snapshot = state.financial_snapshot
    zero = Decimal('0')

    # Pots converted to income over a 20-year retirement
    total_income = (
        (snapshot.state_pension_amount or zero)
        + (snapshot.workplace_pension_value or zero) / RETIREMENT_YEARS
        + (snapshot.personal_pension_value or zero) / RETIREMENT_YEARS
    )
    gap = snapshot.gap

    next_steps = []
    if CalculatorType.STATE_PENSION not in state.calculators:
        next_steps.append('Calculate your State Pension forecast')
    if CalculatorType.WORKPLACE_PENSION not in state.calculators:
        next_steps.append('Project your Workplace Pension growth')
    if CalculatorType.TAX_RELIEF not in state.calculators:
        next_steps.append('Optimize your tax relief')
    if gap > 10000 and not state.has_requested_consultation:
        next_steps.append('Speak to a pension specialist')

    years_left = snapshot.years_to_retirement if snapshot.years_to_retirement is not None else 100
    if gap > 50000 or years_left < 5:
        urgency = 'high'
    elif gap > 20000 or years_left < 15:
        urgency = 'medium'
    else:
        urgency = 'low'

    return {
        "totalPensionIncome": _whole(total_income),
        "pensionGap": _whole(gap),
        "completionPercentage": state.journey_progress,
        "nextSteps": next_steps,
        "urgencyLevel": urgency,
    }
