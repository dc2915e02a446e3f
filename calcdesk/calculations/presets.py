"""
Calculator Presets

Configuration data handed to the engines: tax slab tables, payment
frequencies. Tables are plain tuples; engines are built per request.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from calcdesk.calculations.errors import InvalidInput
from calcdesk.calculations.tax import BracketTaxEngine, TaxResult, slabs_from_rows

SlabRow = Tuple[float, Optional[float], float]


@dataclass(frozen=True)
class TaxRegime:
    """A named slab table. Rows are (lower, upper, rate%); upper None = unbounded."""

    key: str
    label: str
    rows: Tuple[SlabRow, ...]
    allows_deductions: bool = False

    def engine(self) -> BracketTaxEngine:
        return BracketTaxEngine(slabs_from_rows(self.rows))


# Pakistan tax year 2024-25 (simplified)
PK_2024_OLD = TaxRegime(
    key="pk_2024_old",
    label="Pakistan 2024-25 (old regime)",
    rows=(
        (0, 600_000, 0),
        (600_000, 1_200_000, 5),
        (1_200_000, 2_400_000, 15),
        (2_400_000, 3_600_000, 25),
        (3_600_000, 6_000_000, 30),
        (6_000_000, None, 35),
    ),
    allows_deductions=True,
)

PK_2024_NEW = TaxRegime(
    key="pk_2024_new",
    label="Pakistan 2024-25 (new regime)",
    rows=(
        (0, 600_000, 0),
        (600_000, 1_200_000, 2.5),
        (1_200_000, 2_400_000, 12.5),
        (2_400_000, 3_600_000, 22.5),
        (3_600_000, 6_000_000, 27.5),
        (6_000_000, None, 35),
    ),
)

# Salaried withholding table used by the payroll tax-deduction calculator
PK_2024_SALARIED = TaxRegime(
    key="pk_2024_salaried",
    label="Pakistan 2024 salaried withholding",
    rows=(
        (0, 600_000, 0),
        (600_000, 1_200_000, 2.5),
        (1_200_000, 2_400_000, 12.5),
        (2_400_000, 3_600_000, 20),
        (3_600_000, None, 30),
    ),
)

TAX_REGIMES: Dict[str, TaxRegime] = {
    regime.key: regime for regime in (PK_2024_OLD, PK_2024_NEW, PK_2024_SALARIED)
}


def get_tax_regime(key: str) -> TaxRegime:
    try:
        return TAX_REGIMES[key]
    except KeyError:
        raise InvalidInput(
            f"Unknown tax regime {key!r}; expected one of {sorted(TAX_REGIMES)}"
        ) from None


def compare_regimes(
    amount: float, deductions: float = 0.0, keys: Tuple[str, ...] = ("pk_2024_old", "pk_2024_new")
) -> Dict[str, TaxResult]:
    """
    Evaluate one income under several regimes.

    Deductions only reduce the taxable amount in regimes that allow them.
    """
    results = {}
    for key in keys:
        regime = get_tax_regime(key)
        regime_deductions = deductions if regime.allows_deductions else 0.0
        results[key] = regime.engine().compute_tax(amount, regime_deductions)
    return results


# Payments per year for each schedule frequency
PAYMENT_FREQUENCIES: Dict[str, int] = {
    "annual": 1,
    "semiannual": 2,
    "quarterly": 4,
    "monthly": 12,
    "biweekly": 26,
    "weekly": 52,
}


def periods_per_year(frequency: str) -> int:
    try:
        return PAYMENT_FREQUENCIES[frequency]
    except KeyError:
        raise InvalidInput(
            f"Unknown payment frequency {frequency!r}; expected one of {sorted(PAYMENT_FREQUENCIES)}"
        ) from None
