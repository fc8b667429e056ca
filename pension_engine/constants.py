"""
UK Pension Constants

Rates, thresholds and allowances for a single tax year.
All monetary values and rates are Decimal; rates are fractions (0.20 = 20%).
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class StatePensionRules:
    """New State Pension rates and qualifying rules."""

    full_new_weekly: Decimal = Decimal("221.20")
    full_old_weekly: Decimal = Decimal("169.50")
    qualifying_years: int = 35
    min_qualifying_years: int = 10
    # Birth year upper bound -> pension age; None = no upper bound
    pension_age_bands: tuple = ((1960, 66), (1977, 67), (None, 68))
    triple_lock_escalation: Decimal = Decimal("0.03")
    retirement_years: int = 20
    max_projection_years: int = 40
    max_purchasable_gap_years: int = 6


@dataclass(frozen=True)
class IncomeTaxRules:
    """Income tax bands. Limits are gross-income thresholds."""

    personal_allowance: Decimal = Decimal("12570")
    basic_rate: Decimal = Decimal("0.20")
    basic_rate_limit: Decimal = Decimal("50270")
    higher_rate: Decimal = Decimal("0.40")
    higher_rate_limit: Decimal = Decimal("125140")
    additional_rate: Decimal = Decimal("0.45")

    # Scottish five-band schedule
    scottish_starter_rate: Decimal = Decimal("0.19")
    scottish_starter_limit: Decimal = Decimal("14876")
    scottish_basic_rate: Decimal = Decimal("0.20")
    scottish_basic_limit: Decimal = Decimal("26561")
    scottish_intermediate_rate: Decimal = Decimal("0.21")
    scottish_intermediate_limit: Decimal = Decimal("43662")
    scottish_higher_rate: Decimal = Decimal("0.42")
    scottish_higher_limit: Decimal = Decimal("125140")
    scottish_top_rate: Decimal = Decimal("0.47")


@dataclass(frozen=True)
class NationalInsuranceRules:
    """Class 1/2/3 National Insurance. Thresholds are weekly."""

    class1_employee: Decimal = Decimal("0.12")
    class1_employee_higher: Decimal = Decimal("0.02")
    class1_employer: Decimal = Decimal("0.138")
    class2_weekly: Decimal = Decimal("3.45")
    class3_voluntary_weekly: Decimal = Decimal("17.45")
    lower_earnings_limit: Decimal = Decimal("123")
    primary_threshold: Decimal = Decimal("242")
    upper_earnings_limit: Decimal = Decimal("967")


@dataclass(frozen=True)
class AllowanceRules:
    """Pension annual allowance, taper and lump-sum limits."""

    annual: Decimal = Decimal("60000")
    money_purchase_annual: Decimal = Decimal("10000")
    minimum_tapered: Decimal = Decimal("10000")
    taper_threshold: Decimal = Decimal("260000")  # adjusted income
    threshold_income_limit: Decimal = Decimal("200000")
    max_taper_excess: Decimal = Decimal("100000")
    lifetime_allowance: Decimal = Decimal("1073100")  # abolished, kept for protection cases
    carry_forward_years: int = 3
    max_tax_free_lump_sum: Decimal = Decimal("0.25")


@dataclass(frozen=True)
class AutoEnrolmentRules:
    min_employer: Decimal = Decimal("0.03")
    min_employee: Decimal = Decimal("0.05")
    total_min: Decimal = Decimal("0.08")
    earnings_threshold: Decimal = Decimal("6240")
    earnings_upper: Decimal = Decimal("50270")
    age_min: int = 22
    age_max: int = 65


@dataclass(frozen=True)
class Assumptions:
    """Default growth, charge and inflation assumptions."""

    growth_conservative: Decimal = Decimal("0.03")
    growth_moderate: Decimal = Decimal("0.05")
    growth_optimistic: Decimal = Decimal("0.07")
    default_annual_charge: Decimal = Decimal("0.0075")
    stakeholder_max_charge: Decimal = Decimal("0.015")
    sipp_typical_charge: Decimal = Decimal("0.0045")
    inflation_cpi: Decimal = Decimal("0.025")
    inflation_rpi: Decimal = Decimal("0.035")
    inflation_earnings: Decimal = Decimal("0.03")
    default_drawdown_rate: Decimal = Decimal("0.04")
    safe_withdrawal_rate: Decimal = Decimal("0.04")
    high_risk_withdrawal_rate: Decimal = Decimal("0.06")


@dataclass(frozen=True)
class AnnuityRules:
    """Static annuity rate table (annual income per £100,000)."""

    base_rates: tuple = (
        (55, Decimal("3500")),
        (60, Decimal("4000")),
        (65, Decimal("4800")),
        (70, Decimal("6000")),
        (75, Decimal("7500")),
    )
    joint_life_factor: Decimal = Decimal("0.85")
    escalation_factors: tuple = (
        ("level", Decimal("1.0")),
        ("rpi", Decimal("0.75")),
        ("fixed-3", Decimal("0.80")),
        ("fixed-5", Decimal("0.70")),
    )
    enhanced_factor: Decimal = Decimal("1.15")
    single_life_years: int = 25
    joint_life_years: int = 30

    def escalation_factor(self, escalation: str) -> Decimal:
        return dict(self.escalation_factors)[escalation]


@dataclass(frozen=True)
class PensionConstants:
    """Versioned table of UK pension constants for one tax year."""

    tax_year: str
    state_pension: StatePensionRules = field(default_factory=StatePensionRules)
    income_tax: IncomeTaxRules = field(default_factory=IncomeTaxRules)
    national_insurance: NationalInsuranceRules = field(default_factory=NationalInsuranceRules)
    allowances: AllowanceRules = field(default_factory=AllowanceRules)
    auto_enrolment: AutoEnrolmentRules = field(default_factory=AutoEnrolmentRules)
    assumptions: Assumptions = field(default_factory=Assumptions)
    annuity: AnnuityRules = field(default_factory=AnnuityRules)


UK_2025_26 = PensionConstants(tax_year="2025/26")
