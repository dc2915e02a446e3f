"""
Calculation Errors

Exceptions raised by the calculation engines. All of them subclass
ValueError so callers that already catch ValueError keep working.
"""


class CalculationError(ValueError):
    """Base class for engine errors."""


class InvalidInput(CalculationError):
    """Input (or a configuration table such as a slab schedule) is structurally invalid."""


class InsufficientData(CalculationError):
    """Not enough data points for the requested statistic."""
