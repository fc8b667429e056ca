"""
Tests for input parsing and validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from pension_engine.errors import CalculationInputError, InvalidRangeError
from pension_engine.models import (
    AnnuityInput,
    DCPensionInput,
    DrawdownInput,
    SIPPInput,
    StatePensionInput,
    TaxReliefInput,
)
from pension_engine.validators import InputValidator


@pytest.fixture
def validator():
    return InputValidator()


class TestFromDict:
    """Raw dict -> typed input record."""

    def test_numbers_become_decimals_without_float_noise(self):
        inputs = DCPensionInput.from_dict({
            "current_age": 40,
            "retirement_age": 67,
            "current_pot_value": 0.1,
            "monthly_contribution": "250.50",
        })
        assert inputs.current_pot_value == Decimal("0.1")
        assert inputs.monthly_contribution == Decimal("250.50")
        assert inputs.annual_charges_pct == Decimal("0.75")

    def test_missing_required_field(self):
        with pytest.raises(CalculationInputError) as exc:
            DCPensionInput.from_dict({"retirement_age": 67, "current_pot_value": 0, "monthly_contribution": 0})
        assert exc.value.field == "current_age"
        assert "is required" in str(exc.value)

    def test_explicit_null_is_missing(self):
        with pytest.raises(CalculationInputError) as exc:
            SIPPInput.from_dict({
                "current_age": 40, "retirement_age": 60, "current_pot": None, "monthly_contribution": 0,
            })
        assert exc.value.field == "current_pot"

    def test_not_a_number(self):
        with pytest.raises(CalculationInputError) as exc:
            AnnuityInput.from_dict({"pension_pot": "lots", "age": 65})
        assert exc.value.field == "pension_pot"

    def test_booleans_are_not_numbers(self):
        with pytest.raises(CalculationInputError):
            AnnuityInput.from_dict({"pension_pot": True, "age": 65})

    def test_whole_number_fields(self):
        with pytest.raises(CalculationInputError) as exc:
            StatePensionInput.from_dict({"date_of_birth": "1980-01-01", "current_age": 45, "ni_years": 20.5})
        assert exc.value.field == "ni_years"

    def test_whole_floats_are_accepted(self):
        inputs = StatePensionInput.from_dict({"date_of_birth": "1980-01-01", "current_age": 45.0, "ni_years": 20})
        assert inputs.current_age == 45
        assert inputs.date_of_birth == date(1980, 1, 1)

    def test_bad_date(self):
        with pytest.raises(CalculationInputError) as exc:
            StatePensionInput.from_dict({"date_of_birth": "01/01/1980", "current_age": 45, "ni_years": 20})
        assert exc.value.field == "date_of_birth"

    def test_previous_year_contributions(self):
        inputs = TaxReliefInput.from_dict({
            "annual_salary": 60000,
            "monthly_contribution": 300,
            "previous_year_contributions": [10000, 20000],
        })
        assert inputs.previous_year_contributions == [Decimal("10000"), Decimal("20000")]
        assert inputs.total_income == Decimal("60000")

    def test_to_dict_is_json_safe(self):
        inputs = StatePensionInput.from_dict({"date_of_birth": "1980-01-01", "current_age": 45, "ni_years": 20})
        data = inputs.to_dict()
        assert data["date_of_birth"] == "1980-01-01"
        assert data["ni_years"] == 20


class TestStatePensionValidation:

    def make(self, **overrides):
        values = dict(date_of_birth=date(1980, 1, 1), current_age=45, ni_years=20, start_year=2025)
        values.update(overrides)
        return StatePensionInput(**values)

    def test_valid(self, validator):
        validator.validate(self.make())

    @pytest.mark.parametrize("field,value", [
        ("current_age", 15),
        ("current_age", 101),
        ("ni_years", -1),
        ("ni_years", 51),
        ("ni_gaps", 51),
    ])
    def test_out_of_range(self, validator, field, value):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(**{field: value}))
        assert exc.value.field == field

    def test_unknown_gender(self, validator):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(gender="other"))
        assert exc.value.field == "gender"

    def test_birth_in_the_future(self, validator):
        with pytest.raises(InvalidRangeError):
            validator.validate(self.make(date_of_birth=date(2030, 1, 1)))


class TestDCPensionValidation:

    def make(self, **overrides):
        values = dict(
            current_age=40, retirement_age=67,
            current_pot_value=Decimal("10000"), monthly_contribution=Decimal("200"),
        )
        values.update(overrides)
        return DCPensionInput(**values)

    def test_valid(self, validator):
        validator.validate(self.make())

    def test_retirement_before_current_age(self, validator):
        with pytest.raises(InvalidRangeError) as exc:
            validator.validate(self.make(retirement_age=40))
        assert exc.value.field == "retirement_age"

    def test_negative_pot(self, validator):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(current_pot_value=Decimal("-1")))
        assert exc.value.field == "current_pot_value"

    def test_charges_too_high(self, validator):
        with pytest.raises(CalculationInputError):
            validator.validate(self.make(annual_charges_pct=Decimal("11")))

    def test_negative_target_pot(self, validator):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(target_pot=Decimal("-1")))
        assert exc.value.field == "target_pot"


class TestTaxReliefValidation:

    def test_cannot_sacrifice_more_than_salary(self, validator):
        inputs = TaxReliefInput(
            annual_salary=Decimal("10000"), monthly_contribution=Decimal("1000"), salary_sacrifice=True
        )
        with pytest.raises(InvalidRangeError):
            validator.validate(inputs)

    def test_at_most_three_previous_years(self, validator):
        inputs = TaxReliefInput(
            annual_salary=Decimal("60000"), monthly_contribution=Decimal("300"),
            previous_year_contributions=[Decimal("0")] * 4,
        )
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(inputs)
        assert exc.value.field == "previous_year_contributions"


class TestDrawdownValidation:

    def make(self, **overrides):
        values = dict(current_age=60, retirement_age=65, life_expectancy=90, pension_pot=Decimal("200000"))
        values.update(overrides)
        return DrawdownInput(**values)

    def test_retiring_now_is_allowed(self, validator):
        validator.validate(self.make(current_age=65))

    def test_life_expectancy_must_follow_retirement(self, validator):
        with pytest.raises(InvalidRangeError) as exc:
            validator.validate(self.make(life_expectancy=65))
        assert exc.value.field == "life_expectancy"

    def test_retirement_in_the_past(self, validator):
        with pytest.raises(InvalidRangeError):
            validator.validate(self.make(current_age=70))


class TestAnnuityValidation:

    def make(self, **overrides):
        values = dict(pension_pot=Decimal("100000"), age=65)
        values.update(overrides)
        return AnnuityInput(**values)

    def test_valid(self, validator):
        validator.validate(self.make(annuity_type="joint", partner_age=62, guaranteed_period=5))

    def test_pot_must_be_positive(self, validator):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(pension_pot=Decimal("0")))
        assert exc.value.field == "pension_pot"

    def test_too_young(self, validator):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(age=49))
        assert exc.value.field == "age"

    @pytest.mark.parametrize("field,value", [
        ("annuity_type", "triple"),
        ("escalation", "fixed-4"),
        ("guaranteed_period", 7),
    ])
    def test_enumerations(self, validator, field, value):
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(self.make(**{field: value}))
        assert exc.value.field == field


class TestSIPPValidation:

    def test_fees_out_of_range(self, validator):
        inputs = SIPPInput(
            current_age=40, retirement_age=60, current_pot=Decimal("0"),
            monthly_contribution=Decimal("100"), annual_fees_pct=Decimal("12"),
        )
        with pytest.raises(CalculationInputError) as exc:
            validator.validate(inputs)
        assert exc.value.field == "annual_fees_pct"


class TestDispatch:

    def test_unknown_record_type(self, validator):
        with pytest.raises(TypeError):
            validator.validate({"current_age": 40})
