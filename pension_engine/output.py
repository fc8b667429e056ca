"""
Output Builder

Turns calculator result records into API responses and into the
summaries stored against a journey.
"""

from dataclasses import fields, is_dataclass
from decimal import ROUND_HALF_UP, Decimal

from .calculators.common import quantize_money
from .journey.models import BreakdownLine, ResultSummary
from .models import (
    CalculatorResult,
    CalculatorType,
    DrawdownResult,
    StatePensionResult,
    TaxReliefResult,
)

# Fraction-valued result fields, kept at rate precision instead of pennies
RATE_FIELDS = {
    'marginal_tax_rate',
    'effective_tax_rate',
    'income_rate',
    'real_growth_rate',
    'withdrawal_rate',
}


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return float(quantize_money(value))


def to_rate(value: Decimal) -> float:
    """Convert a fractional rate to float with 6 decimal places."""
    return float(value.quantize(Decimal('0.000001'), rounding=ROUND_HALF_UP))


def _fmt(value) -> str:
    """Format a number as currency string for descriptions."""
    return f"£{value:,.2f}"


def _serialize(value, name: str = ""):
    """JSON-safe copy of a result record, rounding money at the boundary."""
    if isinstance(value, Decimal):
        return to_rate(value) if name in RATE_FIELDS else to_money(value)
    if is_dataclass(value):
        return {f.name: _serialize(getattr(value, f.name), f.name) for f in fields(value)}
    if isinstance(value, list):
        return [_serialize(item, name) for item in value]
    return value


class OutputBuilder:
    """Builds API responses and journey summaries from calculator results."""

    def build(self, calculator_type: CalculatorType, inputs, result: CalculatorResult,
              tax_year: str) -> dict:
        """Construct the complete calculation response."""
        return {
            "calculator_type": calculator_type.value,
            "tax_year": tax_year,
            "inputs": inputs.to_dict(),
            "summary": self.build_summary(result).to_dict(),
            "result": _serialize(result),
        }

    def build_summary(self, result: CalculatorResult) -> ResultSummary:
        """Primary value, named secondary values and breakdown for the journey."""
        return ResultSummary(
            primary_value=quantize_money(result.primary_value),
            secondary_values={
                key: quantize_money(value)
                for key, value in result.secondary_values().items()
            },
            breakdown=[
                BreakdownLine(
                    label=item.label,
                    value=quantize_money(item.value),
                    description=item.description,
                )
                for item in result.breakdown
            ],
            insights=self._insights(result),
        )

    def _insights(self, result: CalculatorResult) -> list[str]:
        """Short human-readable notes shown next to the headline figure."""
        if isinstance(result, StatePensionResult):
            insights = [
                f"Your State Pension is forecast at {_fmt(to_money(result.weekly_pension))} a week "
                f"from age {result.pension_age}"
            ]
            if result.annual_gap_benefit > 0:
                insights.append(
                    f"Filling your NI gaps for {_fmt(to_money(result.gap_filling_cost))} could add "
                    f"{_fmt(to_money(result.annual_gap_benefit))} a year"
                )
            return insights + result.warnings

        if isinstance(result, TaxReliefResult):
            return [
                f"You pay {result.tax_band} rate tax at {result.marginal_tax_rate * 100:.0f}%",
                f"{_fmt(to_money(result.tax_relief_amount))} of relief means each "
                f"{_fmt(to_money(result.annual_contribution))} costs you "
                f"{_fmt(to_money(result.net_cost_to_you))}",
            ]

        if isinstance(result, DrawdownResult):
            return [f"Income rated {result.sustainability_rating}"] + result.warnings

        return []
