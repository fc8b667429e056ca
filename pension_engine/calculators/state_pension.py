"""
State Pension Forecaster

Forecasts the new State Pension from National Insurance qualifying years,
prices the voluntary Class 3 top-up for missing years and projects the
weekly amount forward under a flat triple lock approximation.
"""

from decimal import Decimal

from ..constants import UK_2025_26, PensionConstants
from ..models import Assumption, ProjectionPoint, StatePensionInput, StatePensionResult
from .common import ONE, WEEKS


class StatePensionForecaster:
    """Calculates State Pension entitlement for one person."""

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants
        self.rules = constants.state_pension

    def calculate(self, inputs: StatePensionInput) -> StatePensionResult:
        rules = self.rules
        pension_age = self.pension_age(inputs.date_of_birth.year)
        years_to_pension = max(0, pension_age - inputs.current_age)

        qualifying_years = inputs.ni_years + inputs.planned_contributions
        weekly = self._weekly_amount(qualifying_years)
        annual = weekly * WEEKS

        gap_cost = (
            Decimal(inputs.ni_gaps) * self.constants.national_insurance.class3_voluntary_weekly * WEEKS
        )
        years_with_gaps = min(qualifying_years + inputs.ni_gaps, rules.qualifying_years)
        weekly_with_gaps = self._weekly_amount(years_with_gaps)
        annual_benefit = (weekly_with_gaps - weekly) * WEEKS
        lifetime_benefit = annual_benefit * rules.retirement_years

        return StatePensionResult(
            weekly_pension=weekly,
            annual_pension=annual,
            pension_age=pension_age,
            years_to_state_pension=years_to_pension,
            qualifying_years=qualifying_years,
            qualifying_years_required=rules.qualifying_years,
            gap_filling_cost=gap_cost,
            annual_gap_benefit=annual_benefit,
            lifetime_gap_benefit=lifetime_benefit,
            projections=self._project(weekly, pension_age, years_to_pension, inputs.start_year),
            warnings=self._warnings(inputs, qualifying_years),
            assumptions=self._assumptions(),
        )

    def pension_age(self, birth_year: int) -> int:
        """State Pension age from the birth-year bands."""
        for upper_year, age in self.rules.pension_age_bands:
            if upper_year is None or birth_year <= upper_year:
                return age
        raise ValueError(f"No pension age band covers birth year {birth_year}")

    def _weekly_amount(self, qualifying_years: int) -> Decimal:
        # Pro-rata below 35 years; the 10-year minimum is reported as a warning only
        fraction = min(ONE, Decimal(qualifying_years) / Decimal(self.rules.qualifying_years))
        return fraction * self.rules.full_new_weekly

    def _project(self, weekly: Decimal, pension_age: int, years_to_pension: int,
                 start_year: int) -> list[ProjectionPoint]:
        rules = self.rules
        horizon = min(years_to_pension + rules.retirement_years, rules.max_projection_years)
        escalation = ONE + rules.triple_lock_escalation

        points = []
        amount = weekly
        for n in range(horizon + 1):
            if n > 0:
                amount = amount * escalation
            age = None if n < years_to_pension else pension_age + (n - years_to_pension)
            points.append(ProjectionPoint(
                year=start_year + n,
                age=age,
                value=amount * WEEKS,
                weekly=amount,
            ))
        return points

    def _warnings(self, inputs: StatePensionInput, qualifying_years: int) -> list[str]:
        rules = self.rules
        warnings = []

        if qualifying_years < rules.min_qualifying_years:
            warnings.append(
                f"You need at least {rules.min_qualifying_years} qualifying years "
                f"to receive any State Pension"
            )
        if qualifying_years < rules.qualifying_years:
            warnings.append(
                f"You need {rules.qualifying_years - qualifying_years} more years for the full State Pension"
            )
        if inputs.ni_gaps > rules.max_purchasable_gap_years:
            warnings.append(
                f"You can only pay for gaps in the last {rules.max_purchasable_gap_years} tax years"
            )
        if inputs.current_age > 60:
            warnings.append("Check if you can claim Pension Credit for additional support")
        if inputs.overseas_years > 0:
            warnings.append("Overseas years may affect your State Pension - check if you can use them")

        return warnings

    def _assumptions(self) -> list[Assumption]:
        rules = self.rules
        return [
            Assumption(
                "Triple Lock",
                f"{rules.triple_lock_escalation * 100:.0f}% a year",
                "Pension increases by highest of: earnings, inflation, or 2.5%",
            ),
            Assumption(
                "Full State Pension",
                f"£{rules.full_new_weekly}/week",
                f"{self.constants.tax_year} full new State Pension rate",
            ),
            Assumption(
                "Qualifying Years Required",
                str(rules.qualifying_years),
                "Years of NI contributions needed for full pension",
            ),
        ]
