"""
Tests for lead scoring and the gate decision engine.
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pension_engine.journey import (
    FinancialSnapshot,
    UserJourneyState,
    UserProfile,
    calculate_journey_progress,
    calculate_lead_score,
    calculate_lead_temperature,
    calculate_qualification_tier,
    check_gate,
)

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_state(profile=None, snapshot=None, **overrides):
    state = UserJourneyState(user_id="user_1", created_at=NOW, last_updated=NOW)
    if profile:
        state = replace(state, profile=UserProfile(**profile))
    if snapshot:
        state = replace(state, financial_snapshot=FinancialSnapshot(**snapshot))
    return replace(state, **overrides)


FULL_CONTACT = {"email": "sam@example.com", "name": "Sam", "phone": "07700900123"}


class TestLeadScore:

    def test_empty_state_scores_zero(self):
        assert calculate_lead_score(make_state()) == 0

    def test_contact_details(self):
        assert calculate_lead_score(make_state(FULL_CONTACT)) == 50

    def test_calculators_capped(self):
        assert calculate_lead_score(make_state(completed_calculators=2)) == 6
        assert calculate_lead_score(make_state(completed_calculators=8)) == 15

    def test_engaged_session(self):
        assert calculate_lead_score(make_state(total_session_time=300)) == 0
        assert calculate_lead_score(make_state(total_session_time=301)) == 5

    def test_financial_thresholds(self):
        assert calculate_lead_score(make_state(snapshot={"pension_gap": Decimal("20000")})) == 8
        assert calculate_lead_score(make_state(snapshot={"pension_gap": Decimal("60000")})) == 15
        assert calculate_lead_score(make_state(snapshot={"total_current_pot": Decimal("250000")})) == 15

    def test_clamped_to_100(self):
        state = make_state(
            {**FULL_CONTACT, "age": 50, "income": Decimal("80000")},
            {"pension_gap": Decimal("60000"), "total_current_pot": Decimal("250000")},
            completed_calculators=6,
            total_session_time=1000,
            has_requested_consultation=True,
            has_downloaded_pdf=True,
        )
        assert calculate_lead_score(state) == 100

    @pytest.mark.parametrize("signal", [
        {"has_downloaded_pdf": True},
        {"has_requested_consultation": True},
        {"total_session_time": 600},
        {"completed_calculators": 3},
    ])
    def test_adding_a_signal_never_lowers_the_score(self, signal):
        base = make_state({"email": "sam@example.com"}, completed_calculators=2)
        assert calculate_lead_score(replace(base, **signal)) >= calculate_lead_score(base)

    def test_pdf_download_adds_ten(self):
        base = make_state({"email": "sam@example.com"})
        assert calculate_lead_score(replace(base, has_downloaded_pdf=True)) == calculate_lead_score(base) + 10


class TestTemperature:

    def test_cold_by_default(self):
        state = make_state()
        assert calculate_lead_temperature(state, 0) == "cold"

    def test_hot_on_score(self):
        assert calculate_lead_temperature(make_state(), 71) == "hot"

    @pytest.mark.parametrize("overrides", [
        {"has_requested_consultation": True},
        {"snapshot": {"pension_gap": Decimal("50001")}},
        {"snapshot": {"total_current_pot": Decimal("200001")}},
        {"profile": {"urgency": "high"}},
    ])
    def test_hot_signals(self, overrides):
        assert calculate_lead_temperature(make_state(**overrides), 0) == "hot"

    @pytest.mark.parametrize("overrides,score", [
        ({}, 41),
        ({"completed_calculators": 3}, 0),
        ({"has_downloaded_pdf": True}, 0),
    ])
    def test_warm_signals(self, overrides, score):
        assert calculate_lead_temperature(make_state(**overrides), score) == "warm"


class TestQualificationTier:

    def test_anonymous_is_tier_1(self):
        assert calculate_qualification_tier(make_state()) == 1

    def test_email_alone_is_tier_1(self):
        assert calculate_qualification_tier(make_state({"email": "sam@example.com"})) == 1

    def test_email_and_age_is_tier_2(self):
        assert calculate_qualification_tier(make_state({"email": "sam@example.com", "age": 45})) == 2

    def test_full_contact_is_tier_3(self):
        assert calculate_qualification_tier(make_state(FULL_CONTACT)) == 3

    def test_full_contact_and_large_pot_is_tier_4(self):
        state = make_state(FULL_CONTACT, {"total_current_pot": Decimal("150000")})
        assert calculate_qualification_tier(state) == 4


class TestJourneyProgress:

    def test_components(self):
        assert calculate_journey_progress(make_state()) == 0
        assert calculate_journey_progress(make_state({"email": "sam@example.com"})) == 20
        assert calculate_journey_progress(make_state(completed_calculators=2)) == 30

    def test_calculators_capped_at_60(self):
        assert calculate_journey_progress(make_state(completed_calculators=6)) == 60

    def test_maximum(self):
        state = make_state({**FULL_CONTACT, "age": 50}, completed_calculators=4)
        assert calculate_journey_progress(state) == 100


class TestGate:

    def test_no_trigger(self):
        decision = check_gate(make_state())
        assert decision.should_show_gate is False
        assert decision.reason == "no_trigger"
        assert decision.context == {}

    def test_first_calculation_asks_for_email(self):
        decision = check_gate(make_state(completed_calculators=1))
        assert decision.should_show_gate is True
        assert decision.tier == 1
        assert decision.reason == "first_calculation_complete"
        assert decision.required_fields == ("email",)
        assert decision.skippable is False

    def test_tier_1_already_satisfied(self):
        decision = check_gate(make_state({"email": "sam@example.com"}, completed_calculators=1))
        assert decision.tier == 1
        assert decision.should_show_gate is False

    def test_tier_2_after_three_calculators(self):
        decision = check_gate(make_state({"email": "sam@example.com"}, completed_calculators=3))
        assert decision.tier == 2
        assert decision.should_show_gate is True
        assert decision.skippable is True

    def test_tier_2_after_pdf_download(self):
        decision = check_gate(make_state({"email": "sam@example.com"}, has_downloaded_pdf=True))
        assert decision.tier == 2
        assert decision.reason == "enhanced_engagement"

    def test_tier_2_satisfied_by_name_and_age(self):
        state = make_state({"email": "sam@example.com", "name": "Sam", "age": 45}, completed_calculators=3)
        decision = check_gate(state)
        assert decision.tier == 2
        assert decision.should_show_gate is False

    def test_tier_3_on_consultation(self):
        state = make_state({"email": "sam@example.com", "name": "Sam"}, has_requested_consultation=True)
        decision = check_gate(state)
        assert decision.tier == 3
        assert decision.should_show_gate is True
        assert decision.required_fields == ("email", "name", "phone", "best_time_to_call")

    def test_tier_3_on_moderate_gap(self):
        state = make_state({"email": "sam@example.com", "name": "Sam"}, {"pension_gap": Decimal("15000")})
        assert check_gate(state).tier == 3

    def test_tier_4_high_value(self):
        state = make_state({"phone": "07700900123"}, {"pension_gap": Decimal("60000")})
        decision = check_gate(state)
        assert decision.tier == 4
        assert decision.reason == "high_value_lead"
        assert decision.should_show_gate is True
        assert decision.context == {"pensionGap": Decimal("60000"), "totalPot": None}

    def test_tier_4_satisfied_by_urgency(self):
        state = make_state({"phone": "07700900123", "urgency": "medium"}, {"pension_gap": Decimal("60000")})
        assert check_gate(state).should_show_gate is False

    def test_higher_tier_takes_precedence(self):
        state = make_state(
            FULL_CONTACT,
            {"total_current_pot": Decimal("150000")},
            completed_calculators=4,
            has_downloaded_pdf=True,
        )
        assert check_gate(state).tier == 4

    def test_wire_shape(self):
        decision = check_gate(make_state({"email": "sam@example.com", "name": "Sam"},
                                         has_requested_consultation=True))
        assert decision.to_dict() == {
            "shouldShowGate": True,
            "tier": 3,
            "reason": "consultation_or_high_engagement",
            "context": {"completedCalculators": 0},
            "requiredFields": ["email", "name", "phone", "bestTimeToCall"],
            "skippable": True,
        }
