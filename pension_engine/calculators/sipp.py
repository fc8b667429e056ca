"""
SIPP Projector

Closed-form projection of a self-invested personal pension: the existing
pot and any one-off payment compound annually, regular contributions
compound monthly, all at growth net of platform fees.
"""

from decimal import Decimal

from ..constants import UK_2025_26, PensionConstants
from ..models import ProjectionPoint, SIPPInput, SIPPResult
from .common import HUNDRED, MONTHS, ONE, ZERO, pct, safe_divide


class SIPPProjector:
    """Calculates a SIPP's value at retirement."""

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants

    def calculate(self, inputs: SIPPInput) -> SIPPResult:
        years = inputs.retirement_age - inputs.current_age
        months = years * 12
        net_rate = self.net_growth_rate(inputs)

        fv_pot, fv_contributions, fv_one_off = self._future_values(inputs, net_rate, years)
        total_pot = fv_pot + fv_contributions + fv_one_off

        total_contributions = (
            inputs.current_pot + inputs.monthly_contribution * months + inputs.one_off_contribution
        )
        investment_growth = total_pot - total_contributions

        lump_sum = total_pot * self.constants.allowances.max_tax_free_lump_sum
        remaining = total_pot - lump_sum
        annual_income = remaining * self.constants.assumptions.default_drawdown_rate

        return SIPPResult(
            years_to_retirement=years,
            total_projected_pot=total_pot,
            future_value_of_current_pot=fv_pot,
            future_value_of_contributions=fv_contributions,
            future_value_of_one_off=fv_one_off,
            total_contributions=total_contributions,
            investment_growth=investment_growth,
            tax_free_lump_sum=lump_sum,
            remaining_pot=remaining,
            estimated_annual_income=annual_income,
            estimated_monthly_income=annual_income / MONTHS,
            total_fees_estimate=total_pot * pct(inputs.annual_fees_pct) * years,
            growth_percentage=safe_divide(investment_growth, total_contributions) * HUNDRED,
            yearly_projection=[
                ProjectionPoint(
                    year=inputs.start_year + n,
                    age=inputs.current_age + n,
                    value=sum(self._future_values(inputs, net_rate, n), ZERO),
                )
                for n in range(1, years + 1)
            ],
        )

    @staticmethod
    def net_growth_rate(inputs: SIPPInput) -> Decimal:
        return pct(inputs.annual_growth_rate_pct - inputs.annual_fees_pct)

    @staticmethod
    def _future_values(inputs: SIPPInput, net_rate: Decimal, years: int) -> tuple[Decimal, Decimal, Decimal]:
        months = years * 12
        monthly_rate = net_rate / MONTHS
        annual_factor = (ONE + net_rate) ** years

        if monthly_rate == 0:
            fv_contributions = inputs.monthly_contribution * months
        else:
            fv_contributions = (
                inputs.monthly_contribution * ((ONE + monthly_rate) ** months - ONE) / monthly_rate
            )

        return (
            inputs.current_pot * annual_factor,
            fv_contributions,
            inputs.one_off_contribution * annual_factor,
        )
