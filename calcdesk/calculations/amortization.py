"""
Loan Amortization Calculations

Implements installment (EMI) and amortization schedule calculations,
matching Excel's PMT, IPMT and PPMT functions. Used by the loan, mortgage,
EMI and installment-plan calculators.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from calcdesk.calculations.errors import InvalidInput
from calcdesk.calculations.numeric import (
    clamp,
    ensure_in_range,
    growth_factor,
    percent_to_fraction,
    require_non_negative,
    require_period_count,
    require_positive,
)

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class AmortizationInput:
    """Loan terms. The rate is annual, in percent (12 for 12%)."""

    principal: float
    annual_rate_percent: float
    periods: int
    periods_per_year: int = MONTHS_PER_YEAR
    start_date: Optional[date] = None


@dataclass(frozen=True)
class AmortizationRow:
    """One installment of the schedule."""

    period: int
    payment: float
    principal_portion: float
    interest_portion: float
    remaining_balance: float
    beginning_balance: float
    due_date: Optional[date] = None


@dataclass(frozen=True)
class AmortizationSchedule:
    """Level payment plus the full schedule that retires the loan."""

    payment: float
    rows: Tuple[AmortizationRow, ...]

    @property
    def total_interest(self) -> float:
        return sum(row.interest_portion for row in self.rows)

    @property
    def total_principal(self) -> float:
        return sum(row.principal_portion for row in self.rows)

    @property
    def total_payment(self) -> float:
        return sum(row.payment for row in self.rows)


@dataclass(frozen=True)
class YearSummary:
    """Principal and interest paid in one loan year."""

    year: int
    principal: float
    interest: float
    ending_balance: float


def periodic_rate(annual_rate_percent: float, periods_per_year: int = MONTHS_PER_YEAR) -> float:
    """Convert an annual percentage rate into a per-period decimal rate."""
    return percent_to_fraction(annual_rate_percent) / periods_per_year


def validate_frequency(periods_per_year: int) -> int:
    """Reject frequencies that do not divide a year into whole periods."""
    periods_per_year = require_period_count("periods_per_year", periods_per_year)
    if periods_per_year > 365:
        raise InvalidInput(f"periods_per_year must be at most 365, got {periods_per_year}")
    return periods_per_year


def _validate_terms(
    principal: float, annual_rate_percent: float, periods: int, periods_per_year: int
) -> Tuple[float, float, int, int]:
    principal = require_positive("principal", principal)
    annual_rate_percent = require_non_negative("annual_rate_percent", annual_rate_percent)
    periods = require_period_count("periods", periods)
    periods_per_year = validate_frequency(periods_per_year)
    return principal, annual_rate_percent, periods, periods_per_year


def calculate_payment(
    principal: float,
    annual_rate_percent: float,
    periods: int,
    periods_per_year: int = MONTHS_PER_YEAR,
) -> float:
    """
    Calculate the level periodic payment.

    Matches Excel's PMT() function (sign flipped to positive).

    Args:
        principal: Loan principal amount
        annual_rate_percent: Annual interest rate in percent (e.g., 12 for 12%)
        periods: Number of payments
        periods_per_year: Payments per year (12 = monthly)

    Returns:
        Periodic payment amount

    Raises:
        InvalidInput: Non-positive principal, negative rate or a period count
            that is not a positive integer
    """
    principal, annual_rate_percent, periods, periods_per_year = _validate_terms(
        principal, annual_rate_percent, periods, periods_per_year
    )

    rate = periodic_rate(annual_rate_percent, periods_per_year)

    if rate == 0:
        return principal / periods

    growth = growth_factor(rate, periods)
    if growth == 1:
        # Rate too small to register over the term
        return principal / periods
    return ensure_in_range("payment", principal * rate * growth / (growth - 1))


def remaining_balance(
    principal: float,
    annual_rate_percent: float,
    periods: int,
    payments_made: int,
    periods_per_year: int = MONTHS_PER_YEAR,
) -> float:
    """Calculate remaining loan balance after N payments."""
    payments_made = require_period_count("payments_made", payments_made, allow_zero=True)
    payment = calculate_payment(principal, annual_rate_percent, periods, periods_per_year)

    if payments_made >= periods:
        return 0.0

    rate = periodic_rate(annual_rate_percent, periods_per_year)

    if rate == 0:
        return max(0.0, principal - payment * payments_made)

    growth = growth_factor(rate, payments_made)
    balance = ensure_in_range(
        "remaining balance", principal * growth - payment * ((growth - 1) / rate)
    )

    return max(0.0, balance)


def _period_offset(periods_per_year: int, index: int) -> relativedelta:
    """Calendar distance from the first payment to payment number index+1."""
    if MONTHS_PER_YEAR % periods_per_year == 0:
        return relativedelta(months=index * (MONTHS_PER_YEAR // periods_per_year))
    if 52 % periods_per_year == 0:
        return relativedelta(weeks=index * (52 // periods_per_year))
    return relativedelta(days=round(index * 365 / periods_per_year))


def compute_schedule(terms: AmortizationInput) -> AmortizationSchedule:
    """
    Generate a full amortization schedule.

    The last installment absorbs any floating-point drift, so the schedule
    always ends with a remaining balance of exactly zero and the principal
    portions sum to the original principal.

    Args:
        terms: Loan terms

    Returns:
        AmortizationSchedule with one row per payment
    """
    principal, annual_rate_percent, periods, periods_per_year = _validate_terms(
        terms.principal, terms.annual_rate_percent, terms.periods, terms.periods_per_year
    )

    payment = calculate_payment(principal, annual_rate_percent, periods, periods_per_year)
    rate = periodic_rate(annual_rate_percent, periods_per_year)

    rows = []
    balance = principal

    for period in range(1, periods + 1):
        interest = balance * rate

        if period == periods:
            # Final installment clears whatever is left
            principal_pmt = balance
            installment = principal_pmt + interest
            ending_balance = 0.0
        else:
            principal_pmt = min(payment - interest, balance)
            installment = principal_pmt + interest
            ending_balance = clamp(balance - principal_pmt, 0.0)

        row_date = None
        if terms.start_date is not None:
            row_date = terms.start_date + _period_offset(periods_per_year, period - 1)

        rows.append(
            AmortizationRow(
                period=period,
                payment=installment,
                principal_portion=principal_pmt,
                interest_portion=interest,
                remaining_balance=ending_balance,
                beginning_balance=balance,
                due_date=row_date,
            )
        )

        balance = ending_balance

    return AmortizationSchedule(payment=payment, rows=tuple(rows))


def summarize_by_year(
    schedule: AmortizationSchedule, periods_per_year: int = MONTHS_PER_YEAR
) -> List[YearSummary]:
    """Aggregate a schedule into loan years for charting."""
    periods_per_year = require_period_count("periods_per_year", periods_per_year)

    years: Dict[int, List[AmortizationRow]] = {}
    for row in schedule.rows:
        year = (row.period - 1) // periods_per_year + 1
        years.setdefault(year, []).append(row)

    return [
        YearSummary(
            year=year,
            principal=sum(row.principal_portion for row in rows),
            interest=sum(row.interest_portion for row in rows),
            ending_balance=rows[-1].remaining_balance,
        )
        for year, rows in sorted(years.items())
    ]


def calculate_loan_constant(
    principal: float, annual_rate_percent: float, periods: int,
    periods_per_year: int = MONTHS_PER_YEAR,
) -> float:
    """Calculate loan constant (annual debt service / loan amount)."""
    payment = calculate_payment(principal, annual_rate_percent, periods, periods_per_year)
    return payment * periods_per_year / principal
