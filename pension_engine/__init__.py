"""
UK PENSION CALCULATION ENGINE
Calculators for the 2025/26 tax year and the lead-qualification journey.
"""

from .constants import UK_2025_26, PensionConstants
from .errors import CalculationInputError, InvalidRangeError, UnknownCalculatorError
from .models import CalculatorType
from .processor import CalculatorProcessor
from .journey.orchestrator import JourneyOrchestrator, derive_metrics

__all__ = [
    'CalculatorProcessor',
    'CalculatorType',
    'PensionConstants',
    'UK_2025_26',
    'CalculationInputError',
    'InvalidRangeError',
    'UnknownCalculatorError',
    'JourneyOrchestrator',
    'derive_metrics',
]
