"""
Unit Tests for the State Pension Forecaster

Tests verify calculations against known expected values.
"""

from datetime import date
from decimal import Decimal

import pytest

from pension_engine.calculators import StatePensionForecaster
from pension_engine.calculators.common import quantize_money
from pension_engine.models import StatePensionInput


def make_input(**overrides):
    values = dict(
        date_of_birth=date(1985, 6, 15),
        current_age=40,
        ni_years=35,
        ni_gaps=0,
        planned_contributions=0,
        start_year=2025,
    )
    values.update(overrides)
    return StatePensionInput(**values)


class TestPensionAge:
    """Birth-year bands: <=1960 -> 66, 1961-1977 -> 67, >=1978 -> 68."""

    @pytest.fixture
    def forecaster(self):
        return StatePensionForecaster()

    @pytest.mark.parametrize("birth_year,expected", [
        (1955, 66),
        (1960, 66),
        (1961, 67),
        (1977, 67),
        (1978, 68),
        (2000, 68),
    ])
    def test_band_boundaries(self, forecaster, birth_year, expected):
        assert forecaster.pension_age(birth_year) == expected


class TestWeeklyAmount:

    @pytest.fixture
    def forecaster(self):
        return StatePensionForecaster()

    def test_full_record_gets_full_rate(self, forecaster):
        """35 years, no gaps -> £221.20 a week, £11,502.40 a year, nothing to buy."""
        result = forecaster.calculate(make_input())

        assert result.weekly_pension == Decimal("221.20")
        assert result.annual_pension == Decimal("11502.40")
        assert result.gap_filling_cost == Decimal("0")
        assert result.annual_gap_benefit == Decimal("0")
        assert result.lifetime_gap_benefit == Decimal("0")
        assert result.warnings == []

    def test_more_than_35_years_is_capped(self, forecaster):
        result = forecaster.calculate(make_input(ni_years=45))
        assert result.weekly_pension == Decimal("221.20")

    def test_pro_rata_below_35_years(self, forecaster):
        """30/35 of £221.20 = £189.60"""
        result = forecaster.calculate(make_input(ni_years=30))
        assert quantize_money(result.weekly_pension) == Decimal("189.60")

    def test_planned_contributions_count_as_qualifying_years(self, forecaster):
        result = forecaster.calculate(make_input(ni_years=25, planned_contributions=10))
        assert result.qualifying_years == 35
        assert result.weekly_pension == Decimal("221.20")

    def test_weekly_pension_never_decreases_with_more_years(self, forecaster):
        previous = Decimal("-1")
        for years in range(0, 51):
            weekly = forecaster.calculate(make_input(ni_years=years)).weekly_pension
            assert weekly >= previous
            previous = weekly


class TestGapFilling:

    @pytest.fixture
    def forecaster(self):
        return StatePensionForecaster()

    def test_gap_cost_and_benefit(self, forecaster):
        """3 gaps × £17.45 × 52 = £2,722.20; 30 -> 33 years adds £18.96/week."""
        result = forecaster.calculate(make_input(ni_years=30, ni_gaps=3))

        assert result.gap_filling_cost == Decimal("2722.20")
        assert quantize_money(result.annual_gap_benefit) == Decimal("985.92")
        assert quantize_money(result.lifetime_gap_benefit) == Decimal("19718.40")

    def test_benefit_capped_at_full_rate(self, forecaster):
        """Gaps beyond the 35-year ceiling still cost money but add nothing."""
        result = forecaster.calculate(make_input(ni_years=33, ni_gaps=5))

        assert result.gap_filling_cost == Decimal("5") * Decimal("17.45") * 52
        expected = (Decimal("221.20") - Decimal("33") / Decimal("35") * Decimal("221.20")) * 52
        assert quantize_money(result.annual_gap_benefit) == quantize_money(expected)


class TestWarnings:

    @pytest.fixture
    def forecaster(self):
        return StatePensionForecaster()

    def test_below_minimum_years(self, forecaster):
        result = forecaster.calculate(make_input(ni_years=5))

        assert "You need at least 10 qualifying years to receive any State Pension" in result.warnings
        assert "You need 30 more years for the full State Pension" in result.warnings
        # Still reported pro-rata: 5/35 of £221.20
        assert quantize_money(result.weekly_pension) == Decimal("31.60")

    def test_partial_entitlement(self, forecaster):
        result = forecaster.calculate(make_input(ni_years=20))
        assert result.warnings == ["You need 15 more years for the full State Pension"]

    def test_too_many_gaps_to_buy(self, forecaster):
        result = forecaster.calculate(make_input(ni_years=20, ni_gaps=8))
        assert "You can only pay for gaps in the last 6 tax years" in result.warnings

    def test_overseas_years(self, forecaster):
        result = forecaster.calculate(make_input(overseas_years=4))
        assert any("Overseas years" in w for w in result.warnings)


class TestProjection:

    @pytest.fixture
    def forecaster(self):
        return StatePensionForecaster()

    def test_projection_length_is_capped_at_40_years(self, forecaster):
        """Age 40, pension age 68: 28 + 20 = 48 years, capped to 40."""
        result = forecaster.calculate(make_input())

        assert result.years_to_state_pension == 28
        assert len(result.projections) == 41
        assert result.projections[0].year == 2025
        assert result.projections[-1].year == 2065

    def test_ages_only_from_pension_age(self, forecaster):
        result = forecaster.calculate(make_input())

        assert result.projections[27].age is None
        assert result.projections[28].age == 68
        assert result.projections[40].age == 80

    def test_escalates_three_percent_a_year(self, forecaster):
        result = forecaster.calculate(make_input())

        first, second = result.projections[0], result.projections[1]
        assert first.value == Decimal("11502.40")
        assert second.weekly == Decimal("221.20") * Decimal("1.03")

    def test_past_pension_age(self, forecaster):
        """Already past pension age: no years to wait, 20 years of projection."""
        result = forecaster.calculate(make_input(date_of_birth=date(1955, 1, 1), current_age=70))

        assert result.years_to_state_pension == 0
        assert len(result.projections) == 21
        assert result.projections[0].age == 66


class TestDeterminism:

    def test_identical_inputs_identical_outputs(self):
        forecaster = StatePensionForecaster()
        assert forecaster.calculate(make_input(ni_years=22, ni_gaps=2)) == \
            forecaster.calculate(make_input(ni_years=22, ni_gaps=2))
