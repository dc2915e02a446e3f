"""
Progressive Bracket Tax Calculations

Evaluates a marginal-rate slab schedule against an amount. The slab table is
validated once, when the engine is built, so a bad table fails fast instead
of on every call.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from calcdesk.calculations.errors import InvalidInput
from calcdesk.calculations.numeric import require_non_negative


@dataclass(frozen=True)
class Slab:
    """A contiguous income range taxed at its own marginal rate."""

    lower_bound: float
    upper_bound: float  # math.inf for the open-ended top slab
    rate: float  # Percent, e.g. 2.5 for 2.5%

    @property
    def width(self) -> float:
        return self.upper_bound - self.lower_bound

    @property
    def is_open(self) -> bool:
        return math.isinf(self.upper_bound)


@dataclass(frozen=True)
class SlabTax:
    """Portion of the taxable amount falling in one slab."""

    slab: Slab
    taxable_in_slab: float
    tax_in_slab: float


@dataclass(frozen=True)
class TaxResult:
    """Outcome of a bracket tax evaluation."""

    total_tax: float
    effective_rate: float  # Fraction of the gross amount (0.0125 = 1.25%)
    per_slab: Tuple[SlabTax, ...]
    taxable_amount: float
    gross_amount: float
    deductions: float = 0.0

    @property
    def net_amount(self) -> float:
        return self.gross_amount - self.total_tax

    @property
    def marginal_rate(self) -> float:
        """Rate (percent) of the highest slab the amount reaches."""
        if not self.per_slab:
            return 0.0
        return self.per_slab[-1].slab.rate


def slabs_from_rows(rows: Iterable[Sequence[Optional[float]]]) -> List[Slab]:
    """
    Build slabs from (lower, upper, rate) rows.

    An upper bound of None means the slab is unbounded.
    """
    slabs = []
    for lower, upper, rate in rows:
        slabs.append(
            Slab(
                lower_bound=float(lower),
                upper_bound=math.inf if upper is None else float(upper),
                rate=float(rate),
            )
        )
    return slabs


def validate_slabs(slabs: Sequence[Slab]) -> Tuple[Slab, ...]:
    """
    Check a slab table is usable.

    Raises:
        InvalidInput: empty table, first slab not starting at 0, gaps or
            overlaps between slabs, empty/inverted slabs, a bounded top slab,
            or rates outside 0-100.
    """
    if not slabs:
        raise InvalidInput("Slab table must contain at least one slab")

    if slabs[0].lower_bound != 0:
        raise InvalidInput(
            f"First slab must start at 0, got {slabs[0].lower_bound}"
        )

    for index, slab in enumerate(slabs):
        if math.isnan(slab.lower_bound) or math.isnan(slab.upper_bound):
            raise InvalidInput(f"Slab {index} has a NaN bound")
        if not 0 <= slab.rate <= 100:
            raise InvalidInput(f"Slab {index} rate must be within 0-100, got {slab.rate}")
        if slab.upper_bound <= slab.lower_bound:
            raise InvalidInput(
                f"Slab {index} upper bound {slab.upper_bound} must exceed "
                f"lower bound {slab.lower_bound}"
            )
        if index > 0 and slab.lower_bound != slabs[index - 1].upper_bound:
            previous = slabs[index - 1]
            kind = "gap" if slab.lower_bound > previous.upper_bound else "overlap"
            raise InvalidInput(
                f"Slab {index} starts at {slab.lower_bound} but the previous slab "
                f"ends at {previous.upper_bound} ({kind})"
            )
        if slab.is_open and index != len(slabs) - 1:
            raise InvalidInput(f"Only the last slab may be unbounded (slab {index})")

    if not slabs[-1].is_open:
        raise InvalidInput("Last slab must be unbounded")

    return tuple(slabs)


class BracketTaxEngine:
    """
    Progressive tax over a validated slab table.

    Holds only the (immutable) table, so one instance can be shared freely.
    """

    def __init__(self, slabs: Sequence[Slab]):
        self._slabs = validate_slabs(list(slabs))

    @property
    def slabs(self) -> Tuple[Slab, ...]:
        return self._slabs

    def compute_tax(self, amount: float, deductions: float = 0.0) -> TaxResult:
        """
        Calculate tax on an amount.

        Args:
            amount: Gross amount (e.g. annual income)
            deductions: Amount subtracted before the slabs are applied

        Returns:
            TaxResult with the per-slab breakdown
        """
        gross = require_non_negative("amount", amount)
        deductions = require_non_negative("deductions", deductions)
        taxable = max(gross - deductions, 0.0)

        total_tax = 0.0
        remaining = taxable
        breakdown = []

        for slab in self._slabs:
            if remaining <= 0:
                break

            taxable_in_slab = remaining if slab.is_open else min(remaining, slab.width)
            tax_in_slab = taxable_in_slab * slab.rate / 100

            breakdown.append(SlabTax(slab, taxable_in_slab, tax_in_slab))
            total_tax += tax_in_slab
            remaining -= taxable_in_slab

        effective_rate = total_tax / gross if gross > 0 else 0.0

        return TaxResult(
            total_tax=total_tax,
            effective_rate=effective_rate,
            per_slab=tuple(breakdown),
            taxable_amount=taxable,
            gross_amount=gross,
            deductions=deductions,
        )


def compute_tax(amount: float, slabs: Sequence[Slab]) -> TaxResult:
    """Evaluate a slab table once. Prefer BracketTaxEngine for repeated calls."""
    return BracketTaxEngine(slabs).compute_tax(amount)
