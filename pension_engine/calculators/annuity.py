"""
Annuity Income Estimator

Estimates guaranteed income from a static rate table. Live provider
quotes are out of scope, so rates come from the constants table.
"""

from decimal import Decimal

from ..constants import UK_2025_26, PensionConstants
from ..models import AnnuityInput, AnnuityResult, Assumption
from .common import HUNDRED, MONTHS, safe_divide

RATE_BASIS = Decimal('100000')


class AnnuityEstimator:
    """Calculates annuity income with and without a tax-free lump sum."""

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants
        self.rules = constants.annuity

    def calculate(self, inputs: AnnuityInput) -> AnnuityResult:
        rules = self.rules
        bracket_age, base_rate = self.nearest_bracket(inputs.age)

        rate = base_rate
        if inputs.annuity_type == 'joint':
            rate *= rules.joint_life_factor
        rate *= rules.escalation_factor(inputs.escalation)
        if inputs.health_conditions:
            rate *= rules.enhanced_factor

        pot = inputs.pension_pot
        annual_income = pot / RATE_BASIS * rate

        lump_sum = pot * self.constants.allowances.max_tax_free_lump_sum
        annual_with_lump_sum = (pot - lump_sum) / RATE_BASIS * rate

        years = rules.joint_life_years if inputs.annuity_type == 'joint' else rules.single_life_years

        return AnnuityResult(
            bracket_age=bracket_age,
            base_rate=base_rate,
            adjusted_rate=rate,
            annual_income=annual_income,
            monthly_income=annual_income / MONTHS,
            tax_free_lump_sum=lump_sum,
            annual_income_with_lump_sum=annual_with_lump_sum,
            monthly_income_with_lump_sum=annual_with_lump_sum / MONTHS,
            life_expectancy_years=years,
            total_lifetime_income=annual_income * years,
            total_lifetime_income_with_lump_sum=annual_with_lump_sum * years + lump_sum,
            effective_rate_pct=safe_divide(annual_income, pot) * HUNDRED,
            pension_pot=pot,
            assumptions=[
                Assumption("Annuity Type", inputs.annuity_type),
                Assumption("Escalation", inputs.escalation),
                Assumption("Guaranteed Period", f"{inputs.guaranteed_period} years",
                           "Shown for reference; not priced into the estimate"),
                Assumption("Life Expectancy", f"{years} years"),
            ],
        )

    def nearest_bracket(self, age: int) -> tuple[int, Decimal]:
        """Closest age in the rate table; an equal distance keeps the lower age."""
        best_age, best_rate = self.rules.base_rates[0]
        for bracket_age, rate in self.rules.base_rates[1:]:
            if abs(bracket_age - age) < abs(best_age - age):
                best_age, best_rate = bracket_age, rate
        return best_age, best_rate
