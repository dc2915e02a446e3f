"""
Calculation Engines

Pure numeric engines shared by the calculators: progressive bracket tax,
loan amortization, growth projection and inventory optimization.
No engine depends on another; all of them are stateless.
"""

from calcdesk.calculations import amortization, growth, inventory, presets, tax
from calcdesk.calculations.errors import CalculationError, InsufficientData, InvalidInput

__all__ = [
    "amortization",
    "growth",
    "inventory",
    "presets",
    "tax",
    "CalculationError",
    "InsufficientData",
    "InvalidInput",
]
