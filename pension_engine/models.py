"""
Domain Models for the Pension Calculators

Typed input and result records, one pair per calculator.
All monetary values use Decimal for precision. Fields suffixed ``_pct``
hold percentages on a 0-100 scale; every other rate is a 0-1 fraction.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from .errors import CalculationInputError


class CalculatorType(str, Enum):
    """Calculators known to the journey. Values match the public URL slugs."""

    STATE_PENSION = "state-pension"
    WORKPLACE_PENSION = "workplace-pension"
    TAX_RELIEF = "tax-relief"
    PENSION_DRAWDOWN = "pension-drawdown"
    ANNUITY = "annuity"
    SIPP = "sipp"
    LUMP_SUM_TAX = "lump-sum-tax"
    DETAILED_ANALYSIS = "detailed-analysis"


def _current_year() -> int:
    return date.today().year


def _dec(data: dict, key: str, default=None) -> Decimal:
    """Read a Decimal field, raising a field-level error if missing or malformed."""
    value = data.get(key)
    if value is None:
        value = default
    if value is None:
        raise CalculationInputError(key, "is required")
    if isinstance(value, bool):
        raise CalculationInputError(key, "must be a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise CalculationInputError(key, "must be a number")
    if not result.is_finite():
        raise CalculationInputError(key, "must be a finite number")
    return result


def _opt_dec(data: dict, key: str) -> Optional[Decimal]:
    if data.get(key) is None:
        return None
    return _dec(data, key)


def _int(data: dict, key: str, default=None) -> int:
    """Read an integer field (whole-number floats such as 35.0 are accepted)."""
    value = _dec(data, key, default)
    if value != value.to_integral_value():
        raise CalculationInputError(key, "must be a whole number")
    return int(value)


def _date(data: dict, key: str) -> date:
    value = data.get(key)
    if value is None:
        raise CalculationInputError(key, "is required")
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise CalculationInputError(key, "must be an ISO date (YYYY-MM-DD)")


def _plain(value):
    """JSON-safe echo of an input value."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class _InputRecord:
    """Mixin giving every input record a JSON-safe ``to_dict``."""

    def to_dict(self) -> dict:
        return {name: _plain(getattr(self, name)) for name in self.__dataclass_fields__}


# =============================================================================
# SHARED RESULT PARTS
# =============================================================================


@dataclass
class BreakdownItem:
    """A labelled line item shown under a result."""

    label: str
    value: Decimal
    description: str = ""


@dataclass
class Assumption:
    """An assumption echoed back with a result."""

    label: str
    value: str
    description: str = ""


@dataclass
class ProjectionPoint:
    """One point in a year-by-year value series."""

    year: int
    age: Optional[int]
    value: Decimal
    weekly: Optional[Decimal] = None


# =============================================================================
# STATE PENSION
# =============================================================================


@dataclass
class StatePensionInput(_InputRecord):
    """Inputs for the State Pension forecast."""

    date_of_birth: date
    current_age: int
    ni_years: int
    ni_gaps: int = 0
    planned_contributions: int = 0
    gender: str = "male"
    marital_status: str = "single"
    overseas_years: int = 0
    start_year: int = field(default_factory=_current_year)

    @classmethod
    def from_dict(cls, data: dict) -> "StatePensionInput":
        return cls(
            date_of_birth=_date(data, "date_of_birth"),
            current_age=_int(data, "current_age"),
            ni_years=_int(data, "ni_years"),
            ni_gaps=_int(data, "ni_gaps", 0),
            planned_contributions=_int(data, "planned_contributions", 0),
            gender=data.get("gender", "male"),
            marital_status=data.get("marital_status", "single"),
            overseas_years=_int(data, "overseas_years", 0),
            start_year=_int(data, "start_year", _current_year()),
        )


@dataclass
class StatePensionResult:
    weekly_pension: Decimal
    annual_pension: Decimal
    pension_age: int
    years_to_state_pension: int
    qualifying_years: int
    qualifying_years_required: int
    gap_filling_cost: Decimal
    annual_gap_benefit: Decimal
    lifetime_gap_benefit: Decimal
    projections: list[ProjectionPoint] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    assumptions: list[Assumption] = field(default_factory=list)

    @property
    def primary_value(self) -> Decimal:
        return self.annual_pension

    def secondary_values(self) -> dict:
        return {
            "weekly_pension": self.weekly_pension,
            "pension_age": Decimal(self.pension_age),
            "gap_filling_cost": self.gap_filling_cost,
            "annual_gap_benefit": self.annual_gap_benefit,
        }

    @property
    def breakdown(self) -> list[BreakdownItem]:
        return [
            BreakdownItem("Weekly State Pension", self.weekly_pension,
                          f"Based on {self.qualifying_years} qualifying years"),
            BreakdownItem("Annual State Pension", self.annual_pension,
                          "Current value before triple lock increases"),
            BreakdownItem("State Pension Age", Decimal(self.pension_age),
                          f"You can claim from age {self.pension_age}"),
            BreakdownItem("Years to State Pension", Decimal(self.years_to_state_pension),
                          f"{self.years_to_state_pension} years until you can claim"),
            BreakdownItem("Cost to Fill NI Gaps", self.gap_filling_cost,
                          "Voluntary Class 3 contributions for the missing years"),
            BreakdownItem("Annual Benefit of Filling Gaps", self.annual_gap_benefit,
                          "Additional pension per year if gaps filled"),
            BreakdownItem("Lifetime Benefit of Filling Gaps", self.lifetime_gap_benefit,
                          "Total benefit over 20 years retirement"),
        ]


# =============================================================================
# DEFINED CONTRIBUTION (WORKPLACE) PENSION
# =============================================================================


@dataclass
class DCPensionInput(_InputRecord):
    """Inputs for the defined-contribution growth projection."""

    current_age: int
    retirement_age: int
    current_pot_value: Decimal
    monthly_contribution: Decimal
    employer_contribution: Decimal = Decimal("0")  # monthly
    annual_growth_rate_pct: Decimal = Decimal("5")
    inflation_rate_pct: Decimal = Decimal("2.5")
    annual_charges_pct: Decimal = Decimal("0.75")
    tax_free_lump_sum_pct: Decimal = Decimal("25")
    annuity_rate_pct: Optional[Decimal] = None
    drawdown_rate_pct: Optional[Decimal] = None
    target_pot: Optional[Decimal] = None
    start_year: int = field(default_factory=_current_year)

    @classmethod
    def from_dict(cls, data: dict) -> "DCPensionInput":
        return cls(
            current_age=_int(data, "current_age"),
            retirement_age=_int(data, "retirement_age"),
            current_pot_value=_dec(data, "current_pot_value"),
            monthly_contribution=_dec(data, "monthly_contribution"),
            employer_contribution=_dec(data, "employer_contribution", 0),
            annual_growth_rate_pct=_dec(data, "annual_growth_rate_pct", 5),
            inflation_rate_pct=_dec(data, "inflation_rate_pct", "2.5"),
            annual_charges_pct=_dec(data, "annual_charges_pct", "0.75"),
            tax_free_lump_sum_pct=_dec(data, "tax_free_lump_sum_pct", 25),
            annuity_rate_pct=_opt_dec(data, "annuity_rate_pct"),
            drawdown_rate_pct=_opt_dec(data, "drawdown_rate_pct"),
            target_pot=_opt_dec(data, "target_pot"),
            start_year=_int(data, "start_year", _current_year()),
        )


@dataclass
class DCYearProjection:
    year: int
    age: int
    opening_balance: Decimal
    contributions: Decimal
    employer_contributions: Decimal
    growth: Decimal
    charges: Decimal
    closing_balance: Decimal
    real_value: Decimal


@dataclass
class DCPensionResult:
    years_to_retirement: int
    total_contributions: Decimal  # personal only
    employer_contributions: Decimal
    tax_relief_received: Decimal
    projected_pot_value: Decimal
    real_value_today: Decimal
    growth_from_contributions: Decimal
    growth_from_returns: Decimal
    total_charges: Decimal
    effective_contribution: Decimal
    tax_free_lump_sum: Decimal
    remaining_pot: Decimal
    income_method: str  # 'annuity' or 'drawdown'
    income_rate: Decimal
    estimated_annual_income: Decimal
    estimated_monthly_income: Decimal
    year_by_year_projection: list[DCYearProjection] = field(default_factory=list)
    required_monthly_contribution: Optional[Decimal] = None  # set when a target pot is given

    @property
    def primary_value(self) -> Decimal:
        return self.projected_pot_value

    def secondary_values(self) -> dict:
        return {
            "monthly_income": self.estimated_monthly_income,
            "annual_income": self.estimated_annual_income,
            "total_contributions": self.total_contributions,
            "tax_free_lump_sum": self.tax_free_lump_sum,
        }

    @property
    def breakdown(self) -> list[BreakdownItem]:
        return [
            BreakdownItem("Projected Pot", self.projected_pot_value),
            BreakdownItem("Value in Today's Money", self.real_value_today),
            BreakdownItem("Your Contributions", self.total_contributions),
            BreakdownItem("Employer Contributions", self.employer_contributions),
            BreakdownItem("Tax Relief", self.tax_relief_received),
            BreakdownItem("Investment Growth", self.growth_from_returns),
            BreakdownItem("Charges", self.total_charges),
            BreakdownItem("Tax-Free Lump Sum", self.tax_free_lump_sum),
            BreakdownItem("Estimated Annual Income", self.estimated_annual_income),
        ]


# =============================================================================
# TAX RELIEF
# =============================================================================


@dataclass
class TaxReliefInput(_InputRecord):
    """Inputs for the tax relief optimiser."""

    annual_salary: Decimal
    monthly_contribution: Decimal
    bonus_amount: Decimal = Decimal("0")
    other_income: Decimal = Decimal("0")
    employer_contribution: Decimal = Decimal("0")  # monthly
    salary_sacrifice: bool = False
    scottish_taxpayer: bool = False
    tax_code: Optional[str] = None
    carry_forward: bool = False
    previous_year_contributions: list[Decimal] = field(default_factory=list)

    @property
    def total_income(self) -> Decimal:
        return self.annual_salary + self.bonus_amount + self.other_income

    @classmethod
    def from_dict(cls, data: dict) -> "TaxReliefInput":
        previous = data.get("previous_year_contributions") or []
        return cls(
            annual_salary=_dec(data, "annual_salary"),
            monthly_contribution=_dec(data, "monthly_contribution"),
            bonus_amount=_dec(data, "bonus_amount", 0),
            other_income=_dec(data, "other_income", 0),
            employer_contribution=_dec(data, "employer_contribution", 0),
            salary_sacrifice=bool(data.get("salary_sacrifice", False)),
            scottish_taxpayer=bool(data.get("scottish_taxpayer", False)),
            tax_code=data.get("tax_code"),
            carry_forward=bool(data.get("carry_forward", False)),
            previous_year_contributions=[
                _dec({"previous_year_contributions": p}, "previous_year_contributions") for p in previous
            ],
        )


@dataclass
class TaxReliefResult:
    total_income: Decimal
    taxable_income: Decimal
    tax_band: str  # 'basic' | 'higher' | 'additional'
    marginal_tax_rate: Decimal
    effective_tax_rate: Decimal
    annual_contribution: Decimal
    total_with_employer: Decimal
    tax_relief_amount: Decimal
    net_cost_to_you: Decimal
    effective_contribution_rate: Decimal
    basic_rate_relief: Decimal
    higher_rate_relief: Decimal
    additional_rate_relief: Decimal
    salary_sacrifice_ni_saving: Optional[Decimal]
    employer_ni_saving: Optional[Decimal]
    total_salary_sacrifice_benefit: Optional[Decimal]
    annual_allowance_used: Decimal
    annual_allowance_remaining: Decimal
    carry_forward_available: Decimal
    taper_applied: bool
    tapered_allowance: Optional[Decimal]
    current_take_home: Decimal
    new_take_home: Decimal
    monthly_reduction: Decimal
    projected_tax_free_lump_sum: Decimal
    total_tax_savings: Decimal

    @property
    def primary_value(self) -> Decimal:
        return self.tax_relief_amount

    def secondary_values(self) -> dict:
        return {
            "net_cost": self.net_cost_to_you,
            "total_savings": self.total_tax_savings,
        }

    @property
    def breakdown(self) -> list[BreakdownItem]:
        return [
            BreakdownItem("Basic Rate Relief", self.basic_rate_relief),
            BreakdownItem("Higher Rate Relief", self.higher_rate_relief),
            BreakdownItem("Additional Rate Relief", self.additional_rate_relief),
            BreakdownItem("Net Cost to You", self.net_cost_to_you),
            BreakdownItem("Annual Allowance Remaining", self.annual_allowance_remaining),
        ]


# =============================================================================
# DRAWDOWN
# =============================================================================


@dataclass
class DrawdownInput(_InputRecord):
    """Inputs for the drawdown sustainability simulation."""

    current_age: int
    retirement_age: int
    life_expectancy: int
    pension_pot: Decimal
    annual_contribution: Decimal = Decimal("0")
    annual_growth_rate_pct: Decimal = Decimal("5")
    annual_charges_pct: Decimal = Decimal("0")
    inflation_rate_pct: Decimal = Decimal("2.5")
    tax_free_lump_sum_pct: Decimal = Decimal("25")
    withdrawal_rate_pct: Decimal = Decimal("4")
    annual_withdrawal: Optional[Decimal] = None
    start_year: int = field(default_factory=_current_year)

    @classmethod
    def from_dict(cls, data: dict) -> "DrawdownInput":
        return cls(
            current_age=_int(data, "current_age"),
            retirement_age=_int(data, "retirement_age"),
            life_expectancy=_int(data, "life_expectancy"),
            pension_pot=_dec(data, "pension_pot"),
            annual_contribution=_dec(data, "annual_contribution", 0),
            annual_growth_rate_pct=_dec(data, "annual_growth_rate_pct", 5),
            annual_charges_pct=_dec(data, "annual_charges_pct", 0),
            inflation_rate_pct=_dec(data, "inflation_rate_pct", "2.5"),
            tax_free_lump_sum_pct=_dec(data, "tax_free_lump_sum_pct", 25),
            withdrawal_rate_pct=_dec(data, "withdrawal_rate_pct", 4),
            annual_withdrawal=_opt_dec(data, "annual_withdrawal"),
            start_year=_int(data, "start_year", _current_year()),
        )


@dataclass
class DrawdownYear:
    phase: str  # 'accumulation' | 'drawdown'
    year: int
    age: int
    opening_balance: Decimal
    contribution: Decimal
    growth: Decimal
    withdrawal: Decimal
    closing_balance: Decimal


@dataclass
class DrawdownResult:
    real_growth_rate: Decimal
    pot_at_retirement: Decimal
    tax_free_lump_sum: Decimal
    pot_after_lump_sum: Decimal
    annual_withdrawal: Decimal
    monthly_income: Decimal
    withdrawal_rate: Decimal  # fraction
    years_of_income: int
    total_withdrawn: Decimal
    final_balance: Decimal
    depletion_age: Optional[int]
    depletion_year: Optional[int]
    sustainability_rating: str  # 'Sustainable' | 'At Risk'
    is_high_risk: bool
    yearly_projection: list[DrawdownYear] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def primary_value(self) -> Decimal:
        return self.annual_withdrawal

    def secondary_values(self) -> dict:
        return {
            "monthly_income": self.monthly_income,
            "tax_free_lump_sum": self.tax_free_lump_sum,
        }

    @property
    def breakdown(self) -> list[BreakdownItem]:
        return [
            BreakdownItem("Pot at Retirement", self.pot_at_retirement),
            BreakdownItem("Tax-Free Lump Sum", self.tax_free_lump_sum),
            BreakdownItem("Pot After Lump Sum", self.pot_after_lump_sum),
            BreakdownItem("Annual Income", self.annual_withdrawal),
            BreakdownItem("Total Withdrawn", self.total_withdrawn),
            BreakdownItem("Final Balance", self.final_balance),
        ]


# =============================================================================
# ANNUITY
# =============================================================================


@dataclass
class AnnuityInput(_InputRecord):
    """Inputs for the annuity income estimate."""

    pension_pot: Decimal
    age: int
    partner_age: Optional[int] = None
    annuity_type: str = "single"  # 'single' | 'joint'
    escalation: str = "level"  # 'level' | 'rpi' | 'fixed-3' | 'fixed-5'
    guaranteed_period: int = 0
    health_conditions: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "AnnuityInput":
        return cls(
            pension_pot=_dec(data, "pension_pot"),
            age=_int(data, "age"),
            partner_age=_int(data, "partner_age") if data.get("partner_age") is not None else None,
            annuity_type=data.get("annuity_type", "single"),
            escalation=data.get("escalation", "level"),
            guaranteed_period=_int(data, "guaranteed_period", 0),
            health_conditions=bool(data.get("health_conditions", False)),
        )


@dataclass
class AnnuityResult:
    bracket_age: int
    base_rate: Decimal  # per £100,000
    adjusted_rate: Decimal  # per £100,000
    annual_income: Decimal
    monthly_income: Decimal
    tax_free_lump_sum: Decimal
    annual_income_with_lump_sum: Decimal
    monthly_income_with_lump_sum: Decimal
    life_expectancy_years: int
    total_lifetime_income: Decimal
    total_lifetime_income_with_lump_sum: Decimal
    effective_rate_pct: Decimal
    pension_pot: Decimal
    assumptions: list[Assumption] = field(default_factory=list)

    @property
    def primary_value(self) -> Decimal:
        return self.annual_income

    def secondary_values(self) -> dict:
        return {
            "monthly_income": self.monthly_income,
            "pension_pot": self.pension_pot,
        }

    @property
    def breakdown(self) -> list[BreakdownItem]:
        return [
            BreakdownItem("Annual Income", self.annual_income),
            BreakdownItem("Monthly Income", self.monthly_income),
            BreakdownItem("Tax-Free Lump Sum", self.tax_free_lump_sum),
            BreakdownItem("Annual Income After Lump Sum", self.annual_income_with_lump_sum),
            BreakdownItem("Lifetime Income", self.total_lifetime_income),
        ]


# =============================================================================
# SIPP
# =============================================================================


@dataclass
class SIPPInput(_InputRecord):
    """Inputs for the SIPP projection."""

    current_age: int
    retirement_age: int
    current_pot: Decimal
    monthly_contribution: Decimal
    annual_growth_rate_pct: Decimal = Decimal("7")
    annual_fees_pct: Decimal = Decimal("0.5")
    one_off_contribution: Decimal = Decimal("0")
    start_year: int = field(default_factory=_current_year)

    @classmethod
    def from_dict(cls, data: dict) -> "SIPPInput":
        return cls(
            current_age=_int(data, "current_age"),
            retirement_age=_int(data, "retirement_age"),
            current_pot=_dec(data, "current_pot"),
            monthly_contribution=_dec(data, "monthly_contribution"),
            annual_growth_rate_pct=_dec(data, "annual_growth_rate_pct", 7),
            annual_fees_pct=_dec(data, "annual_fees_pct", "0.5"),
            one_off_contribution=_dec(data, "one_off_contribution", 0),
            start_year=_int(data, "start_year", _current_year()),
        )


@dataclass
class SIPPResult:
    years_to_retirement: int
    total_projected_pot: Decimal
    future_value_of_current_pot: Decimal
    future_value_of_contributions: Decimal
    future_value_of_one_off: Decimal
    total_contributions: Decimal
    investment_growth: Decimal
    tax_free_lump_sum: Decimal
    remaining_pot: Decimal
    estimated_annual_income: Decimal
    estimated_monthly_income: Decimal
    total_fees_estimate: Decimal
    growth_percentage: Decimal
    yearly_projection: list[ProjectionPoint] = field(default_factory=list)

    @property
    def primary_value(self) -> Decimal:
        return self.total_projected_pot

    def secondary_values(self) -> dict:
        return {
            "monthly_income": self.estimated_monthly_income,
            "annual_income": self.estimated_annual_income,
            "total_contributions": self.total_contributions,
        }

    @property
    def breakdown(self) -> list[BreakdownItem]:
        return [
            BreakdownItem("Projected Pot", self.total_projected_pot),
            BreakdownItem("Total Contributions", self.total_contributions),
            BreakdownItem("Investment Growth", self.investment_growth),
            BreakdownItem("Tax-Free Lump Sum", self.tax_free_lump_sum),
            BreakdownItem("Estimated Annual Income", self.estimated_annual_income),
            BreakdownItem("Estimated Fees", self.total_fees_estimate),
        ]


CalculatorInput = Union[
    StatePensionInput, DCPensionInput, TaxReliefInput, DrawdownInput, AnnuityInput, SIPPInput
]
CalculatorResult = Union[
    StatePensionResult, DCPensionResult, TaxReliefResult, DrawdownResult, AnnuityResult, SIPPResult
]
