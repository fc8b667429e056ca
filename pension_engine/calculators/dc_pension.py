"""
Defined-Contribution Growth Projector

Projects a workplace pension pot year by year to retirement. Contributions
are assumed to arrive evenly through the year, so each year's growth and
charges apply to the opening balance plus half of that year's contributions.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..constants import UK_2025_26, PensionConstants
from ..errors import InvalidRangeError
from ..models import DCPensionInput, DCPensionResult, DCYearProjection
from .common import MONTHS, ONE, ZERO, pct, to_decimal


class DCPensionProjector:
    """Calculates the projected pot and retirement income for a DC pension."""

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants

    def calculate(self, inputs: DCPensionInput) -> DCPensionResult:
        years = inputs.retirement_age - inputs.current_age
        if years <= 0:
            raise InvalidRangeError('retirement_age', "must be greater than current_age")

        basic_rate = self.constants.income_tax.basic_rate
        annual_personal = inputs.monthly_contribution * MONTHS
        annual_employer = inputs.employer_contribution * MONTHS
        annual_relief = annual_personal * basic_rate / (ONE - basic_rate)
        annual_contribution = annual_personal + annual_employer + annual_relief

        projection = self._project(inputs, years, annual_contribution, annual_employer)
        pot = projection[-1].closing_balance

        total_personal = annual_personal * years
        total_employer = annual_employer * years
        total_relief = annual_relief * years
        total_contributions = total_personal + total_employer + total_relief
        total_charges = sum((row.charges for row in projection), ZERO)

        lump_sum_fraction = min(pct(inputs.tax_free_lump_sum_pct),
                                self.constants.allowances.max_tax_free_lump_sum)
        lump_sum = pot * lump_sum_fraction
        remaining = pot - lump_sum

        income_method, income_rate = self._income_rate(inputs)
        annual_income = remaining * income_rate

        required = None
        if inputs.target_pot is not None:
            required = required_monthly_contribution(
                inputs.target_pot, inputs.current_age, inputs.retirement_age,
                inputs.current_pot_value, inputs.annual_growth_rate_pct,
                inputs.employer_contribution, self.constants,
            )

        return DCPensionResult(
            years_to_retirement=years,
            total_contributions=total_personal,
            employer_contributions=total_employer,
            tax_relief_received=total_relief,
            projected_pot_value=pot,
            real_value_today=self._real_value(pot, inputs.inflation_rate_pct, years),
            growth_from_contributions=total_contributions - total_personal,
            growth_from_returns=pot - inputs.current_pot_value - total_contributions + total_charges,
            total_charges=total_charges,
            effective_contribution=total_personal + total_relief,
            tax_free_lump_sum=lump_sum,
            remaining_pot=remaining,
            income_method=income_method,
            income_rate=income_rate,
            estimated_annual_income=annual_income,
            estimated_monthly_income=annual_income / MONTHS,
            year_by_year_projection=projection,
            required_monthly_contribution=required,
        )

    def _project(self, inputs: DCPensionInput, years: int, annual_contribution: Decimal,
                 annual_employer: Decimal) -> list[DCYearProjection]:
        growth_rate = pct(inputs.annual_growth_rate_pct)
        charge_rate = pct(inputs.annual_charges_pct)

        rows = []
        balance = inputs.current_pot_value
        for i in range(1, years + 1):
            opening = balance
            average = opening + annual_contribution / 2
            growth = average * growth_rate
            charges = average * charge_rate
            balance = opening + annual_contribution + growth - charges

            rows.append(DCYearProjection(
                year=inputs.start_year + i,
                age=inputs.current_age + i,
                opening_balance=opening,
                contributions=annual_contribution,
                employer_contributions=annual_employer,
                growth=growth,
                charges=charges,
                closing_balance=balance,
                real_value=self._real_value(balance, inputs.inflation_rate_pct, i),
            ))
        return rows

    def _income_rate(self, inputs: DCPensionInput) -> tuple[str, Decimal]:
        if inputs.annuity_rate_pct:
            return 'annuity', pct(inputs.annuity_rate_pct)
        if inputs.drawdown_rate_pct:
            return 'drawdown', pct(inputs.drawdown_rate_pct)
        return 'drawdown', self.constants.assumptions.default_drawdown_rate

    @staticmethod
    def _real_value(nominal: Decimal, inflation_rate_pct: Decimal, years: int) -> Decimal:
        """Deflate a nominal value back to today's money."""
        return nominal / (ONE + pct(inflation_rate_pct)) ** years


def required_monthly_contribution(target_pot, current_age: int, retirement_age: int,
                                  current_pot_value, expected_return_pct,
                                  employer_contribution=0,
                                  constants: PensionConstants = UK_2025_26) -> Decimal:
    """
    Monthly personal contribution needed to reach target_pot by retirement.

    Compounds monthly, deducts the employer's monthly contribution and then
    nets off basic-rate relief added at source. Rounded to whole pounds and
    never negative.
    """
    months = (retirement_age - current_age) * 12
    if months <= 0:
        raise InvalidRangeError('retirement_age', "must be greater than current_age")

    monthly_return = pct(to_decimal(expected_return_pct)) / MONTHS
    growth_factor = (ONE + monthly_return) ** months

    future_current_pot = to_decimal(current_pot_value) * growth_factor
    shortfall = to_decimal(target_pot) - future_current_pot

    if monthly_return == 0:
        annuity_factor = Decimal(months)
    else:
        annuity_factor = (growth_factor - ONE) / monthly_return

    total_monthly = shortfall / annuity_factor
    personal = max(ZERO, total_monthly - to_decimal(employer_contribution))
    net_of_relief = personal * (ONE - constants.income_tax.basic_rate)
    return net_of_relief.quantize(Decimal('1'), rounding=ROUND_HALF_UP)
