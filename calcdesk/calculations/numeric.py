"""
Numeric Helpers

Rounding, clamping and boundary validation shared by every engine.
"""

import math
from numbers import Integral
from typing import Optional

from calcdesk.calculations.errors import InvalidInput

CURRENCY_DECIMALS = 2


def round_currency(value: float, decimals: int = CURRENCY_DECIMALS) -> float:
    """Round a monetary amount for presentation."""
    if math.isinf(value):
        return value
    return round(value, decimals)


def clamp(value: float, lower: float, upper: Optional[float] = None) -> float:
    """Clamp value into [lower, upper]. upper=None means unbounded."""
    if value < lower:
        return lower
    if upper is not None and value > upper:
        return upper
    return value


def require_finite(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise InvalidInput(f"{name} must be finite, got {value}")
    return float(value)


def require_positive(name: str, value: float) -> float:
    value = require_finite(name, value)
    if value <= 0:
        raise InvalidInput(f"{name} must be positive, got {value}")
    return value


def require_non_negative(name: str, value: float) -> float:
    value = require_finite(name, value)
    if value < 0:
        raise InvalidInput(f"{name} must not be negative, got {value}")
    return value


def require_period_count(name: str, value: int, allow_zero: bool = False) -> int:
    """
    Validate a period count.

    Accepts ints and integral floats (e.g. 60.0), rejects fractional values.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be an integer, got {value!r}")
    if isinstance(value, Integral):
        count = int(value)
    elif isinstance(value, float) and value.is_integer():
        count = int(value)
    else:
        raise InvalidInput(f"{name} must be an integer, got {value!r}")

    if count < 0 or (count == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise InvalidInput(f"{name} must be a {qualifier} integer, got {count}")
    return count


def percent_to_fraction(rate_percent: float) -> float:
    """Convert a percentage (e.g. 12 for 12%) to a fraction (0.12)."""
    return rate_percent / 100


def ensure_in_range(name: str, value: float) -> float:
    """Reject a computed result that overflowed the float range."""
    if math.isnan(value) or math.isinf(value):
        raise InvalidInput(f"{name} is out of range for these inputs")
    return value


def growth_factor(rate: float, periods: float) -> float:
    """(1 + rate) ** periods, as an InvalidInput when it cannot be represented."""
    try:
        growth = (1.0 + rate) ** periods
    except OverflowError:
        raise InvalidInput(
            f"rate {rate} over {periods} periods is out of range"
        ) from None
    return ensure_in_range("growth factor", growth)


def round_half_up(value: float) -> int:
    """Round to a whole number with ties going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))
