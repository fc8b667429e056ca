"""
Drawdown Sustainability Simulator

Two-phase year-by-year simulation at a net real growth rate:
accumulation until retirement, a tax-free lump sum at retirement, then a
fixed annual withdrawal until the pot runs out or life expectancy is reached.
"""

from decimal import Decimal
from typing import Optional

from ..constants import UK_2025_26, PensionConstants
from ..models import DrawdownInput, DrawdownResult, DrawdownYear
from .common import MONTHS, ONE, ZERO, pct, safe_divide


class DrawdownSimulator:
    """Simulates whether a drawdown income lasts for life."""

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants

    def calculate(self, inputs: DrawdownInput) -> DrawdownResult:
        assumptions = self.constants.assumptions
        real_growth = self.real_growth_rate(inputs)

        rows, balance = self._accumulate(inputs, real_growth)
        pot_at_retirement = balance

        lump_sum_fraction = min(pct(inputs.tax_free_lump_sum_pct),
                                self.constants.allowances.max_tax_free_lump_sum)
        lump_sum = pot_at_retirement * lump_sum_fraction
        pot_after_lump_sum = pot_at_retirement - lump_sum

        if inputs.annual_withdrawal is not None:
            withdrawal = inputs.annual_withdrawal
        else:
            withdrawal = pot_after_lump_sum * pct(inputs.withdrawal_rate_pct)
        withdrawal_rate = safe_divide(withdrawal, pot_after_lump_sum)

        drawdown_rows, depletion_age = self._draw_down(inputs, pot_after_lump_sum, withdrawal, real_growth)
        rows.extend(drawdown_rows)

        depletion_year: Optional[int] = None
        if depletion_age is not None:
            depletion_year = inputs.start_year + (depletion_age - inputs.current_age)

        is_high_risk = withdrawal_rate > assumptions.high_risk_withdrawal_rate
        warnings = []
        if withdrawal_rate > assumptions.safe_withdrawal_rate:
            warnings.append(
                f"Withdrawal rate of {withdrawal_rate * 100:.1f}% is above the "
                f"{assumptions.safe_withdrawal_rate * 100:.0f}% sustainable guideline"
            )
        if is_high_risk:
            warnings.append("Withdrawal rate is high risk and likely to deplete your pot")
        if depletion_age is not None:
            warnings.append(
                f"Your pot is projected to run out at age {depletion_age}, "
                f"before age {inputs.life_expectancy}"
            )

        return DrawdownResult(
            real_growth_rate=real_growth,
            pot_at_retirement=pot_at_retirement,
            tax_free_lump_sum=lump_sum,
            pot_after_lump_sum=pot_after_lump_sum,
            annual_withdrawal=withdrawal,
            monthly_income=withdrawal / MONTHS,
            withdrawal_rate=withdrawal_rate,
            years_of_income=len(drawdown_rows),
            total_withdrawn=sum((row.withdrawal for row in drawdown_rows), ZERO),
            final_balance=drawdown_rows[-1].closing_balance if drawdown_rows else pot_after_lump_sum,
            depletion_age=depletion_age,
            depletion_year=depletion_year,
            sustainability_rating='Sustainable' if depletion_age is None else 'At Risk',
            is_high_risk=is_high_risk,
            yearly_projection=rows,
            warnings=warnings,
        )

    @staticmethod
    def real_growth_rate(inputs: DrawdownInput) -> Decimal:
        """Growth net of charges, deflated by inflation."""
        nominal = ONE + pct(inputs.annual_growth_rate_pct) - pct(inputs.annual_charges_pct)
        return nominal / (ONE + pct(inputs.inflation_rate_pct)) - ONE

    def _accumulate(self, inputs: DrawdownInput, real_growth: Decimal) -> tuple[list[DrawdownYear], Decimal]:
        rows = []
        balance = inputs.pension_pot
        for offset, age in enumerate(range(inputs.current_age, inputs.retirement_age)):
            opening = balance
            invested = opening + inputs.annual_contribution
            growth = invested * real_growth
            balance = invested + growth
            rows.append(DrawdownYear(
                phase='accumulation',
                year=inputs.start_year + offset,
                age=age,
                opening_balance=opening,
                contribution=inputs.annual_contribution,
                growth=growth,
                withdrawal=ZERO,
                closing_balance=balance,
            ))
        return rows, balance

    def _draw_down(self, inputs: DrawdownInput, pot: Decimal, withdrawal: Decimal,
                   real_growth: Decimal) -> tuple[list[DrawdownYear], Optional[int]]:
        """Run the withdrawal phase. Returns the rows and the depletion age, if any."""
        rows = []
        balance = pot
        for age in range(inputs.retirement_age, inputs.life_expectancy):
            opening = balance
            growth = opening * real_growth
            closing = opening + growth - withdrawal
            paid = withdrawal
            depleted = closing <= 0
            if depleted:
                # Final year only pays out what is left
                paid = max(ZERO, opening + growth)
                closing = ZERO

            rows.append(DrawdownYear(
                phase='drawdown',
                year=inputs.start_year + (age - inputs.current_age),
                age=age,
                opening_balance=opening,
                contribution=ZERO,
                growth=growth,
                withdrawal=paid,
                closing_balance=closing,
            ))
            if depleted:
                return rows, age
            balance = closing
        return rows, None
