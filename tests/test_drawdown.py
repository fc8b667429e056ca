"""
Unit Tests for the Drawdown Simulator
"""

from decimal import Decimal

import pytest

from pension_engine.calculators import DrawdownSimulator
from pension_engine.models import DrawdownInput


def make_input(**overrides):
    values = dict(
        current_age=65,
        retirement_age=65,
        life_expectancy=90,
        pension_pot=Decimal("100000"),
        start_year=2025,
    )
    values.update(overrides)
    return DrawdownInput(**values)


def flat(**overrides):
    """No growth, no charges, no inflation."""
    return make_input(
        annual_growth_rate_pct=Decimal("0"),
        annual_charges_pct=Decimal("0"),
        inflation_rate_pct=Decimal("0"),
        **overrides,
    )


class TestRealGrowthRate:

    def test_net_of_charges_and_inflation(self):
        rate = DrawdownSimulator.real_growth_rate(make_input(
            annual_growth_rate_pct=Decimal("5"),
            annual_charges_pct=Decimal("1"),
            inflation_rate_pct=Decimal("2.5"),
        ))
        assert rate == Decimal("1.04") / Decimal("1.025") - 1

    def test_flat_assumptions_give_zero(self):
        assert DrawdownSimulator.real_growth_rate(flat()) == Decimal("0")


class TestSustainableIncome:

    @pytest.fixture
    def result(self):
        return DrawdownSimulator().calculate(make_input())

    def test_lump_sum_and_withdrawal(self, result):
        assert result.tax_free_lump_sum == Decimal("25000")
        assert result.pot_after_lump_sum == Decimal("75000")
        assert result.annual_withdrawal == Decimal("3000")
        assert result.withdrawal_rate == Decimal("0.04")

    def test_sustainable(self, result):
        assert result.sustainability_rating == "Sustainable"
        assert result.depletion_age is None
        assert result.depletion_year is None
        assert result.is_high_risk is False
        assert result.warnings == []

    def test_runs_to_life_expectancy(self, result):
        assert result.years_of_income == 25
        assert result.yearly_projection[-1].age == 89
        assert result.final_balance == result.yearly_projection[-1].closing_balance
        assert result.final_balance > 0


class TestDepletion:

    def test_depletes_exactly_at_five_percent_with_no_growth(self):
        """£75,000 at £3,750 a year lasts 20 years: ages 65 to 84."""
        result = DrawdownSimulator().calculate(flat(withdrawal_rate_pct=Decimal("5")))

        assert result.depletion_age == 84
        assert result.depletion_year == 2044
        assert result.sustainability_rating == "At Risk"
        assert result.total_withdrawn == Decimal("75000")
        assert result.final_balance == Decimal("0")
        assert "Your pot is projected to run out at age 84, before age 90" in result.warnings

    def test_final_year_pays_only_what_is_left(self):
        result = DrawdownSimulator().calculate(flat(annual_withdrawal=Decimal("40000")))

        rows = result.yearly_projection
        assert [row.withdrawal for row in rows] == [Decimal("40000"), Decimal("35000")]
        assert rows[-1].closing_balance == Decimal("0")
        assert result.depletion_age == 66

    def test_high_withdrawal_is_flagged(self):
        result = DrawdownSimulator().calculate(make_input(annual_withdrawal=Decimal("10000")))

        assert result.is_high_risk is True
        assert result.sustainability_rating == "At Risk"
        assert any("above the 4% sustainable guideline" in w for w in result.warnings)
        assert "Withdrawal rate is high risk and likely to deplete your pot" in result.warnings

    def test_above_guideline_but_not_high_risk(self):
        result = DrawdownSimulator().calculate(make_input(withdrawal_rate_pct=Decimal("5")))

        assert result.is_high_risk is False
        assert any("above the 4% sustainable guideline" in w for w in result.warnings)


class TestAccumulationPhase:

    @pytest.fixture
    def result(self):
        return DrawdownSimulator().calculate(flat(
            current_age=60,
            annual_contribution=Decimal("10000"),
        ))

    def test_accumulation_rows(self, result):
        accumulation = [r for r in result.yearly_projection if r.phase == "accumulation"]
        assert [r.age for r in accumulation] == [60, 61, 62, 63, 64]
        assert [r.year for r in accumulation] == [2025, 2026, 2027, 2028, 2029]

    def test_pot_at_retirement(self, result):
        assert result.pot_at_retirement == Decimal("150000")
        assert result.tax_free_lump_sum == Decimal("37500")

    def test_drawdown_year_numbers_follow_age(self, result):
        first_drawdown = next(r for r in result.yearly_projection if r.phase == "drawdown")
        assert first_drawdown.age == 65
        assert first_drawdown.year == 2030


class TestEdgeCases:

    def test_empty_pot_has_zero_rate(self):
        result = DrawdownSimulator().calculate(flat(pension_pot=Decimal("0")))
        assert result.withdrawal_rate == Decimal("0")

    def test_identical_inputs_identical_outputs(self):
        simulator = DrawdownSimulator()
        assert simulator.calculate(make_input()) == simulator.calculate(make_input())
