"""
Error taxonomy for the pension engine.

All errors derive from ValueError so callers that only know about
ValueError (the HTTP edges) treat them as client errors.
"""


class CalculationInputError(ValueError):
    """A calculator input field is missing, malformed or out of range."""

    def __init__(self, field: str, constraint: str):
        self.field = field
        self.constraint = constraint
        super().__init__(f"{field} {constraint}")


class InvalidRangeError(CalculationInputError):
    """Two fields violate an invariant between them (e.g. retirement before now)."""


class UnknownCalculatorError(ValueError):
    """Requested calculator type has no registered calculator."""

    def __init__(self, calculator_type: str):
        self.calculator_type = calculator_type
        super().__init__(f"Unknown calculator type: {calculator_type}")
