"""
Calculator Processor - Main Entry Point

Routes a calculator type to its input record and calculator, and runs the
pipeline: parse -> validate -> calculate -> build output. Validation always
runs first, so a bad input never produces a partial result.
"""

import logging
from typing import Any, Dict, Union

from .calculators import (
    AnnuityEstimator,
    DCPensionProjector,
    DrawdownSimulator,
    SIPPProjector,
    StatePensionForecaster,
    TaxReliefOptimizer,
)
from .constants import UK_2025_26, PensionConstants
from .errors import UnknownCalculatorError
from .models import (
    AnnuityInput,
    CalculatorResult,
    CalculatorType,
    DCPensionInput,
    DrawdownInput,
    SIPPInput,
    StatePensionInput,
    TaxReliefInput,
)
from .output import OutputBuilder
from .validators import InputValidator

logger = logging.getLogger(__name__)


class CalculatorProcessor:
    """
    Main orchestrator for calculator requests.

    Pipeline:
    1. Resolve calculator type
    2. Parse input record (from_dict)
    3. Validate
    4. Calculate
    5. Build output
    """

    def __init__(self, constants: PensionConstants = UK_2025_26):
        self.constants = constants
        self.validator = InputValidator()
        self.output_builder = OutputBuilder()
        self.registry = {
            CalculatorType.STATE_PENSION: (StatePensionInput, StatePensionForecaster(constants)),
            CalculatorType.WORKPLACE_PENSION: (DCPensionInput, DCPensionProjector(constants)),
            CalculatorType.TAX_RELIEF: (TaxReliefInput, TaxReliefOptimizer(constants)),
            CalculatorType.PENSION_DRAWDOWN: (DrawdownInput, DrawdownSimulator(constants)),
            CalculatorType.ANNUITY: (AnnuityInput, AnnuityEstimator(constants)),
            CalculatorType.SIPP: (SIPPInput, SIPPProjector(constants)),
        }

    @property
    def supported_types(self) -> list[str]:
        return [calculator_type.value for calculator_type in self.registry]

    def resolve(self, calculator_type: Union[str, CalculatorType]) -> CalculatorType:
        try:
            resolved = CalculatorType(calculator_type)
        except ValueError:
            raise UnknownCalculatorError(str(calculator_type))
        if resolved not in self.registry:
            raise UnknownCalculatorError(resolved.value)
        return resolved

    def parse(self, calculator_type: Union[str, CalculatorType], data: Dict[str, Any]):
        """Build the typed input record for a calculator from a raw dict."""
        input_cls, _ = self.registry[self.resolve(calculator_type)]
        return input_cls.from_dict(data)

    def calculate(self, calculator_type: Union[str, CalculatorType], inputs) -> CalculatorResult:
        """
        Validate and run one calculator.

        Args:
            calculator_type: CalculatorType or its string value
            inputs: the calculator's input record, or a raw dict to parse

        Returns:
            The calculator's result record
        """
        resolved = self.resolve(calculator_type)
        input_cls, calculator = self.registry[resolved]

        if isinstance(inputs, dict):
            inputs = input_cls.from_dict(inputs)
        if not isinstance(inputs, input_cls):
            raise TypeError(f"{resolved.value} expects {input_cls.__name__}, got {type(inputs).__name__}")

        self.validator.validate(inputs)
        return calculator.calculate(inputs)

    def process_from_dict(self, calculator_type: Union[str, CalculatorType],
                          data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a calculator from raw dictionary input.

        Convenience method for API usage.
        """
        resolved = self.resolve(calculator_type)
        inputs = self.parse(resolved, data)
        result = self.calculate(resolved, inputs)
        logger.debug(f"Calculated {resolved.value}: primary value {result.primary_value}")
        return self.output_builder.build(resolved, inputs, result, self.constants.tax_year)
