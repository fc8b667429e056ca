"""
Tax Relief Optimizer

Works out how much tax relief a pension contribution attracts, what salary
sacrifice would save in National Insurance, how much of the annual allowance
is used (with taper and carry-forward) and the effect on take-home pay.

Tax bands are applied to gross income: the personal allowance is a 0% band
and every later limit is a gross-income threshold.
"""

from decimal import Decimal
from typing import Optional

from ..constants import UK_2025_26, PensionConstants
from ..models import TaxReliefInput, TaxReliefResult
from .common import HUNDRED, MONTHS, ONE, WEEKS, ZERO, safe_divide

# Projection horizon used for the indicative lump sum
LUMP_SUM_PROJECTION_YEARS = 30


class TaxReliefOptimizer:
    """Calculates pension tax relief and salary sacrifice savings."""

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants
        self.tax = constants.income_tax
        self.ni = constants.national_insurance
        self.allowances = constants.allowances

    def calculate(self, inputs: TaxReliefInput) -> TaxReliefResult:
        income = inputs.total_income
        contribution = inputs.monthly_contribution * MONTHS
        employer = inputs.employer_contribution * MONTHS
        scottish = inputs.scottish_taxpayer

        marginal_rate, band = self.marginal_rate(income, scottish)
        total_tax = self.income_tax(income, scottish)

        relief, basic_relief, higher_relief, additional_relief = self._relief(
            contribution, marginal_rate, band, inputs.salary_sacrifice
        )
        net_cost = contribution - relief

        employee_ni_saving: Optional[Decimal] = None
        employer_ni_saving: Optional[Decimal] = None
        total_ss_benefit: Optional[Decimal] = None
        if inputs.salary_sacrifice:
            employee_ni_saving = self._employee_ni_saving(contribution)
            employer_ni_saving = contribution * self.ni.class1_employer
            total_ss_benefit = employee_ni_saving + employer_ni_saving
        ni_saving = employee_ni_saving or ZERO

        allowance, taper_applied = self._annual_allowance(income, contribution, employer)
        carry_forward = self._carry_forward(inputs) if inputs.carry_forward else ZERO
        total_pension_input = contribution + employer

        current_take_home = self.take_home(income, ZERO, scottish)
        if inputs.salary_sacrifice:
            new_take_home = self.take_home(income - contribution, ZERO, scottish)
        else:
            new_take_home = self.take_home(income, contribution, scottish)

        return TaxReliefResult(
            total_income=income,
            taxable_income=max(ZERO, income - self.tax.personal_allowance),
            tax_band=band,
            marginal_tax_rate=marginal_rate,
            effective_tax_rate=safe_divide(total_tax, income),
            annual_contribution=contribution,
            total_with_employer=total_pension_input,
            tax_relief_amount=relief,
            net_cost_to_you=net_cost,
            effective_contribution_rate=safe_divide(net_cost - ni_saving, income) * HUNDRED,
            basic_rate_relief=basic_relief,
            higher_rate_relief=higher_relief,
            additional_rate_relief=additional_relief,
            salary_sacrifice_ni_saving=employee_ni_saving,
            employer_ni_saving=employer_ni_saving,
            total_salary_sacrifice_benefit=total_ss_benefit,
            annual_allowance_used=min(total_pension_input, allowance + carry_forward),
            annual_allowance_remaining=max(ZERO, allowance - total_pension_input),
            carry_forward_available=carry_forward,
            taper_applied=taper_applied,
            tapered_allowance=allowance if taper_applied else None,
            current_take_home=current_take_home,
            new_take_home=new_take_home,
            monthly_reduction=(current_take_home - new_take_home) / MONTHS,
            projected_tax_free_lump_sum=(
                total_pension_input * LUMP_SUM_PROJECTION_YEARS * self.allowances.max_tax_free_lump_sum
            ),
            total_tax_savings=relief + ni_saving,
        )

    # =========================================================================
    # INCOME TAX
    # =========================================================================

    def tax_bands(self, scottish: bool) -> list[tuple[Optional[Decimal], Decimal, str]]:
        """(gross upper limit, rate, band label) from the bottom up; None = no limit."""
        tax = self.tax
        if scottish:
            return [
                (tax.personal_allowance, ZERO, 'basic'),
                (tax.scottish_starter_limit, tax.scottish_starter_rate, 'basic'),
                (tax.scottish_basic_limit, tax.scottish_basic_rate, 'basic'),
                (tax.scottish_intermediate_limit, tax.scottish_intermediate_rate, 'basic'),
                (tax.scottish_higher_limit, tax.scottish_higher_rate, 'higher'),
                (None, tax.scottish_top_rate, 'additional'),
            ]
        return [
            (tax.personal_allowance, ZERO, 'basic'),
            (tax.basic_rate_limit, tax.basic_rate, 'basic'),
            (tax.higher_rate_limit, tax.higher_rate, 'higher'),
            (None, tax.additional_rate, 'additional'),
        ]

    def marginal_rate(self, income: Decimal, scottish: bool = False) -> tuple[Decimal, str]:
        """Rate paid on the next pound of income, with its band label."""
        for limit, rate, label in self.tax_bands(scottish):
            if limit is None or income <= limit:
                return rate, label
        raise ValueError(f"No tax band covers income {income}")

    def income_tax(self, income: Decimal, scottish: bool = False) -> Decimal:
        """Total income tax on gross income, band by band."""
        total = ZERO
        lower = ZERO
        for limit, rate, _ in self.tax_bands(scottish):
            upper = income if limit is None else min(income, limit)
            if upper > lower:
                total += (upper - lower) * rate
            if limit is None or income <= limit:
                break
            lower = limit
        return total

    def employee_ni(self, gross: Decimal) -> Decimal:
        """Annual Class 1 employee NI, computed on weekly earnings."""
        ni = self.ni
        weekly = gross / WEEKS
        if weekly > ni.upper_earnings_limit:
            return (
                (ni.upper_earnings_limit - ni.primary_threshold) * ni.class1_employee
                + (weekly - ni.upper_earnings_limit) * ni.class1_employee_higher
            ) * WEEKS
        if weekly > ni.primary_threshold:
            return (weekly - ni.primary_threshold) * ni.class1_employee * WEEKS
        return ZERO

    def take_home(self, gross: Decimal, pension_contribution: Decimal, scottish: bool = False) -> Decimal:
        return gross - self.income_tax(gross, scottish) - self.employee_ni(gross) - pension_contribution

    # =========================================================================
    # RELIEF AND ALLOWANCES
    # =========================================================================

    def _relief(self, contribution: Decimal, marginal_rate: Decimal, band: str,
                salary_sacrifice: bool) -> tuple[Decimal, Decimal, Decimal, Decimal]:
        """
        Total relief and its split into basic/higher/additional buckets.

        Salary sacrifice gets the full marginal rate in one bucket. Relief at
        source gets the basic-rate gross-up plus any top-up for the band above
        basic. The three buckets always sum to the total.
        """
        buckets = {'basic': ZERO, 'higher': ZERO, 'additional': ZERO}

        if salary_sacrifice:
            relief = contribution * marginal_rate
            buckets[band] = relief
        else:
            basic_rate = self.tax.basic_rate
            gross_up = contribution * basic_rate / (ONE - basic_rate)
            top_up = contribution * (marginal_rate - basic_rate) if marginal_rate > basic_rate else ZERO
            relief = gross_up + top_up
            buckets['basic'] = gross_up
            buckets[band] += top_up

        return relief, buckets['basic'], buckets['higher'], buckets['additional']

    def _employee_ni_saving(self, contribution: Decimal) -> Decimal:
        ni = self.ni
        main_band_weekly = ni.upper_earnings_limit - ni.primary_threshold
        if contribution / WEEKS <= main_band_weekly:
            return contribution * ni.class1_employee

        within_main_band = main_band_weekly * WEEKS
        above = contribution - within_main_band
        return within_main_band * ni.class1_employee + above * ni.class1_employee_higher

    def _annual_allowance(self, income: Decimal, contribution: Decimal,
                          employer: Decimal) -> tuple[Decimal, bool]:
        """Annual allowance after any taper for high earners."""
        allowances = self.allowances
        threshold_income = income - contribution
        adjusted_income = income + employer

        if (threshold_income > allowances.threshold_income_limit
                and adjusted_income > allowances.taper_threshold):
            excess = min(adjusted_income - allowances.taper_threshold, allowances.max_taper_excess)
            return max(allowances.minimum_tapered, allowances.annual - excess / 2), True

        return allowances.annual, False

    def _carry_forward(self, inputs: TaxReliefInput) -> Decimal:
        """Unused allowance from up to three previous years."""
        years = self.allowances.carry_forward_years
        previous = inputs.previous_year_contributions or [ZERO] * years
        unused = ZERO
        for contributed in previous[:years]:
            unused += max(ZERO, self.allowances.annual - contributed)
        return unused
