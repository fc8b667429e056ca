"""
Calculators Package

One class per pension calculator, each with a single calculate() method.
"""

from .annuity import AnnuityEstimator
from .dc_pension import DCPensionProjector, required_monthly_contribution
from .drawdown import DrawdownSimulator
from .sipp import SIPPProjector
from .state_pension import StatePensionForecaster
from .tax_relief import TaxReliefOptimizer

__all__ = [
    "StatePensionForecaster",
    "DCPensionProjector",
    "TaxReliefOptimizer",
    "DrawdownSimulator",
    "AnnuityEstimator",
    "SIPPProjector",
    "required_monthly_contribution",
]
