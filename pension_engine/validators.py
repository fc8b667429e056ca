"""
Input Validation for the Pension Calculators

Validates every calculator input record before any computation begins.
Raises CalculationInputError (a ValueError) naming the offending field,
or InvalidRangeError when two fields contradict each other.
"""

from decimal import Decimal

from .errors import CalculationInputError, InvalidRangeError
from .models import (
    AnnuityInput,
    DCPensionInput,
    DrawdownInput,
    SIPPInput,
    StatePensionInput,
    TaxReliefInput,
)

GENDERS = ('male', 'female')
MARITAL_STATUSES = ('single', 'married', 'divorced', 'widowed')
ANNUITY_TYPES = ('single', 'joint')
ESCALATIONS = ('level', 'rpi', 'fixed-3', 'fixed-5')
GUARANTEED_PERIODS = (0, 5, 10)


def _check_range(name: str, value, low, high) -> None:
    if value < low or value > high:
        raise CalculationInputError(name, f"must be between {low} and {high}, got: {value}")


def _check_non_negative(name: str, value) -> None:
    if value < 0:
        raise CalculationInputError(name, f"cannot be negative, got: {value}")


def _check_percent(name: str, value: Decimal) -> None:
    _check_range(name, value, 0, 100)


class InputValidator:
    """Validates calculator inputs according to UK pension rules."""

    def validate(self, inputs) -> None:
        """Dispatch on the input record type. Raises if any check fails."""
        validators = {
            StatePensionInput: self.validate_state_pension,
            DCPensionInput: self.validate_dc_pension,
            TaxReliefInput: self.validate_tax_relief,
            DrawdownInput: self.validate_drawdown,
            AnnuityInput: self.validate_annuity,
            SIPPInput: self.validate_sipp,
        }
        validator = validators.get(type(inputs))
        if validator is None:
            raise TypeError(f"No validator for {type(inputs).__name__}")
        validator(inputs)

    def validate_state_pension(self, inputs: StatePensionInput) -> None:
        _check_range('current_age', inputs.current_age, 16, 100)
        _check_range('ni_years', inputs.ni_years, 0, 50)
        _check_range('ni_gaps', inputs.ni_gaps, 0, 50)
        _check_range('planned_contributions', inputs.planned_contributions, 0, 50)
        _check_range('overseas_years', inputs.overseas_years, 0, 50)

        if inputs.gender not in GENDERS:
            raise CalculationInputError('gender', f"must be one of {GENDERS}, got: {inputs.gender}")
        if inputs.marital_status not in MARITAL_STATUSES:
            raise CalculationInputError(
                'marital_status', f"must be one of {MARITAL_STATUSES}, got: {inputs.marital_status}"
            )
        if inputs.date_of_birth.year > inputs.start_year:
            raise InvalidRangeError('date_of_birth', "cannot be in the future")

    def validate_dc_pension(self, inputs: DCPensionInput) -> None:
        _check_range('current_age', inputs.current_age, 16, 100)
        _check_range('retirement_age', inputs.retirement_age, 16, 100)
        if inputs.retirement_age <= inputs.current_age:
            raise InvalidRangeError(
                'retirement_age',
                f"must be greater than current_age ({inputs.current_age}), got: {inputs.retirement_age}",
            )

        _check_non_negative('current_pot_value', inputs.current_pot_value)
        _check_non_negative('monthly_contribution', inputs.monthly_contribution)
        _check_non_negative('employer_contribution', inputs.employer_contribution)

        _check_range('annual_growth_rate_pct', inputs.annual_growth_rate_pct, -50, 50)
        _check_range('inflation_rate_pct', inputs.inflation_rate_pct, -20, 50)
        _check_range('annual_charges_pct', inputs.annual_charges_pct, 0, 10)
        _check_percent('tax_free_lump_sum_pct', inputs.tax_free_lump_sum_pct)
        if inputs.annuity_rate_pct is not None:
            _check_percent('annuity_rate_pct', inputs.annuity_rate_pct)
        if inputs.drawdown_rate_pct is not None:
            _check_percent('drawdown_rate_pct', inputs.drawdown_rate_pct)
        if inputs.target_pot is not None:
            _check_non_negative('target_pot', inputs.target_pot)

    def validate_tax_relief(self, inputs: TaxReliefInput) -> None:
        _check_non_negative('annual_salary', inputs.annual_salary)
        _check_non_negative('bonus_amount', inputs.bonus_amount)
        _check_non_negative('other_income', inputs.other_income)
        _check_non_negative('monthly_contribution', inputs.monthly_contribution)
        _check_non_negative('employer_contribution', inputs.employer_contribution)

        if len(inputs.previous_year_contributions) > 3:
            raise CalculationInputError(
                'previous_year_contributions',
                f"can cover at most 3 years, got: {len(inputs.previous_year_contributions)}",
            )
        for amount in inputs.previous_year_contributions:
            _check_non_negative('previous_year_contributions', amount)

        if inputs.salary_sacrifice and inputs.monthly_contribution * 12 > inputs.annual_salary:
            raise InvalidRangeError(
                'monthly_contribution', "cannot sacrifice more than the annual salary"
            )

    def validate_drawdown(self, inputs: DrawdownInput) -> None:
        _check_range('current_age', inputs.current_age, 16, 100)
        _check_range('retirement_age', inputs.retirement_age, 16, 100)
        _check_range('life_expectancy', inputs.life_expectancy, 16, 120)
        if inputs.retirement_age < inputs.current_age:
            raise InvalidRangeError(
                'retirement_age',
                f"cannot be before current_age ({inputs.current_age}), got: {inputs.retirement_age}",
            )
        if inputs.life_expectancy <= inputs.retirement_age:
            raise InvalidRangeError(
                'life_expectancy',
                f"must be greater than retirement_age ({inputs.retirement_age}), got: {inputs.life_expectancy}",
            )

        _check_non_negative('pension_pot', inputs.pension_pot)
        _check_non_negative('annual_contribution', inputs.annual_contribution)
        _check_range('annual_growth_rate_pct', inputs.annual_growth_rate_pct, -50, 50)
        _check_range('annual_charges_pct', inputs.annual_charges_pct, 0, 10)
        _check_range('inflation_rate_pct', inputs.inflation_rate_pct, -20, 50)
        _check_percent('tax_free_lump_sum_pct', inputs.tax_free_lump_sum_pct)
        _check_percent('withdrawal_rate_pct', inputs.withdrawal_rate_pct)
        if inputs.annual_withdrawal is not None:
            _check_non_negative('annual_withdrawal', inputs.annual_withdrawal)

    def validate_annuity(self, inputs: AnnuityInput) -> None:
        if inputs.pension_pot <= 0:
            raise CalculationInputError('pension_pot', f"must be positive, got: {inputs.pension_pot}")
        _check_range('age', inputs.age, 50, 100)
        if inputs.annuity_type not in ANNUITY_TYPES:
            raise CalculationInputError(
                'annuity_type', f"must be one of {ANNUITY_TYPES}, got: {inputs.annuity_type}"
            )
        if inputs.escalation not in ESCALATIONS:
            raise CalculationInputError(
                'escalation', f"must be one of {ESCALATIONS}, got: {inputs.escalation}"
            )
        if inputs.guaranteed_period not in GUARANTEED_PERIODS:
            raise CalculationInputError(
                'guaranteed_period', f"must be one of {GUARANTEED_PERIODS}, got: {inputs.guaranteed_period}"
            )
        if inputs.partner_age is not None:
            _check_range('partner_age', inputs.partner_age, 16, 100)

    def validate_sipp(self, inputs: SIPPInput) -> None:
        _check_range('current_age', inputs.current_age, 16, 100)
        _check_range('retirement_age', inputs.retirement_age, 16, 100)
        if inputs.retirement_age <= inputs.current_age:
            raise InvalidRangeError(
                'retirement_age',
                f"must be greater than current_age ({inputs.current_age}), got: {inputs.retirement_age}",
            )
        _check_non_negative('current_pot', inputs.current_pot)
        _check_non_negative('monthly_contribution', inputs.monthly_contribution)
        _check_non_negative('one_off_contribution', inputs.one_off_contribution)
        _check_range('annual_growth_rate_pct', inputs.annual_growth_rate_pct, -50, 50)
        _check_range('annual_fees_pct', inputs.annual_fees_pct, 0, 10)
