"""
Growth Projection Calculations

Compound growth, annuity future value, phased balance projections
(accumulation then draw-down), and linear trend fitting.

Used by the savings, SIP, retirement, business growth, population growth
and trend analysis calculators.
"""

import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np

from calcdesk.calculations.errors import InsufficientData, InvalidInput
from calcdesk.calculations.numeric import (
    ensure_in_range,
    growth_factor,
    percent_to_fraction,
    require_finite,
    require_non_negative,
    require_period_count,
)

ACCUMULATION = "accumulation"
DECUMULATION = "decumulation"

CONTRIBUTION_TIMINGS = ("end", "begin")


@dataclass(frozen=True)
class GrowthInput:
    """Starting balance plus a contribution added every period."""

    principal: float
    periodic_contribution: float
    periodic_rate: float  # Decimal per period, e.g. 0.01 for 1% a month
    periods: int


@dataclass(frozen=True)
class SimpleGrowthInput:
    """Single amount compounded at a percentage rate."""

    initial: float
    rate_percent: float
    periods: float
    periods_per_year: int = 1


@dataclass(frozen=True)
class PhaseSchedule:
    """
    Switch from contributing to withdrawing.

    Periods numbered below `pivot` are in the accumulation phase; `pivot`
    and later periods are in the decumulation phase. A pivot beyond the last
    period means the projection never switches.
    """

    pivot: int
    withdrawal: float = 0.0
    rate_after_pivot: Optional[float] = None
    floor: float = 0.0


@dataclass(frozen=True)
class ProjectionPoint:
    period: int
    value: float
    phase: str = ACCUMULATION
    clamped: bool = False


@dataclass(frozen=True)
class GrowthPoint:
    """Value of a compounding amount at the end of a year."""

    year: int
    value: float
    growth: float
    cumulative_growth: float


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class TrendStatistics:
    count: int
    average: float
    std_dev: float
    minimum: float
    maximum: float
    range: float
    coefficient_of_variation: float  # Percent
    total_growth_percent: float
    average_growth_percent: float


def _validate_rate(name: str, rate: float) -> float:
    rate = require_finite(name, rate)
    if rate <= -1:
        raise InvalidInput(f"{name} must be greater than -1 (-100%), got {rate}")
    return rate


def future_value(
    principal: float,
    periodic_contribution: float,
    periodic_rate: float,
    periods: int,
    contribution_timing: str = "end",
) -> float:
    """
    Calculate the future value of a lump sum plus a level contribution.

    FV = P(1+r)^n + C((1+r)^n - 1)/r, with the annuity term replaced by its
    limit C*n when r == 0.

    Args:
        principal: Amount invested at period 0
        periodic_contribution: Amount added every period
        periodic_rate: Decimal rate per period
        periods: Number of compounding periods
        contribution_timing: "end" (ordinary annuity) or "begin" (annuity
            due, e.g. SIP instalments invested at the start of each month)

    Returns:
        Future value after `periods` periods
    """
    principal = require_non_negative("principal", principal)
    contribution = require_non_negative("periodic_contribution", periodic_contribution)
    rate = _validate_rate("periodic_rate", periodic_rate)
    periods = require_period_count("periods", periods, allow_zero=True)
    if contribution_timing not in CONTRIBUTION_TIMINGS:
        raise InvalidInput(
            f"contribution_timing must be one of {CONTRIBUTION_TIMINGS}, got {contribution_timing!r}"
        )

    if rate == 0:
        return principal + contribution * periods

    growth = growth_factor(rate, periods)
    annuity = contribution * ((growth - 1) / rate)
    if contribution_timing == "begin":
        annuity *= 1 + rate

    return ensure_in_range("future value", principal * growth + annuity)


def compound(
    initial: float, rate_percent: float, periods: float, periods_per_year: int = 1
) -> float:
    """
    Compound a single amount: initial * (1 + r/m)^(m*t).

    Args:
        initial: Starting value (revenue, population, deposit)
        rate_percent: Annual growth rate in percent
        periods: Number of years (may be fractional)
        periods_per_year: Compounding frequency (1 yearly, 4 quarterly, 12 monthly)
    """
    initial = require_non_negative("initial", initial)
    periods = require_non_negative("periods", periods)
    periods_per_year = require_period_count("periods_per_year", periods_per_year)
    rate = _validate_rate("rate", percent_to_fraction(rate_percent) / periods_per_year)

    return ensure_in_range(
        "compounded value", initial * growth_factor(rate, periods_per_year * periods)
    )


def compound_series(growth_input: SimpleGrowthInput) -> List[GrowthPoint]:
    """Year-by-year values of a compounding amount from year 0 to the horizon."""
    years = require_period_count("periods", growth_input.periods, allow_zero=True)

    points = []
    previous = growth_input.initial
    for year in range(years + 1):
        value = compound(
            growth_input.initial,
            growth_input.rate_percent,
            year,
            growth_input.periods_per_year,
        )
        points.append(
            GrowthPoint(
                year=year,
                value=value,
                growth=0.0 if year == 0 else value - previous,
                cumulative_growth=value - growth_input.initial,
            )
        )
        previous = value
    return points


class ProjectionSeries:
    """
    Period-by-period balance projection.

    The series is recomputed from its inputs every time it is iterated, so
    it can be walked any number of times and never goes stale.
    """

    def __init__(self, growth_input: GrowthInput, phases: PhaseSchedule):
        self._principal = require_non_negative("principal", growth_input.principal)
        self._contribution = require_non_negative(
            "periodic_contribution", growth_input.periodic_contribution
        )
        self._rate = _validate_rate("periodic_rate", growth_input.periodic_rate)
        self._periods = require_period_count("periods", growth_input.periods, allow_zero=True)

        self._pivot = require_period_count("pivot", phases.pivot)
        self._withdrawal = require_non_negative("withdrawal", phases.withdrawal)
        self._rate_after = (
            self._rate
            if phases.rate_after_pivot is None
            else _validate_rate("rate_after_pivot", phases.rate_after_pivot)
        )
        self._floor = require_finite("floor", phases.floor)
        if self._principal < self._floor:
            raise InvalidInput(
                f"principal {self._principal} is below the floor {self._floor}"
            )

    def __len__(self) -> int:
        return self._periods

    def __iter__(self) -> Iterator[ProjectionPoint]:
        balance = self._principal

        for period in range(1, self._periods + 1):
            if period < self._pivot:
                phase = ACCUMULATION
                balance = balance * (1 + self._rate) + self._contribution
            else:
                phase = DECUMULATION
                balance = balance * (1 + self._rate_after) - self._withdrawal
            ensure_in_range(f"balance at period {period}", balance)

            clamped = balance < self._floor
            if clamped:
                balance = self._floor

            yield ProjectionPoint(period=period, value=balance, phase=phase, clamped=clamped)

    def points(self) -> List[ProjectionPoint]:
        return list(self)

    @property
    def final_value(self) -> float:
        value = self._principal
        for point in self:
            value = point.value
        return value

    @property
    def exhausted_at(self) -> Optional[int]:
        """First period at which the balance hit the floor, or None."""
        for point in self:
            if point.clamped:
                return point.period
        return None

    @property
    def is_exhausted(self) -> bool:
        return self.exhausted_at is not None


def project_series(
    growth_input: GrowthInput, phases: Optional[PhaseSchedule] = None
) -> ProjectionSeries:
    """
    Build a phased projection.

    Without a phase schedule the balance only accumulates.
    """
    if phases is None:
        phases = PhaseSchedule(pivot=int(growth_input.periods) + 1)
    return ProjectionSeries(growth_input, phases)


def linear_regression(series: Sequence[float]) -> RegressionResult:
    """
    Fit a least-squares line through the series, with x = 0, 1, 2, ...

    slope = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)
    intercept = (Sy - slope*Sx) / n

    Raises:
        InsufficientData: Fewer than 2 points
    """
    values = _as_array(series)
    n = values.size
    if n < 2:
        raise InsufficientData(f"At least 2 data points required, got {n}")

    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = values.sum()
    sum_xy = (x * values).sum()
    sum_xx = (x * x).sum()

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    return RegressionResult(slope=float(slope), intercept=float(intercept))


def trend_statistics(series: Sequence[float]) -> TrendStatistics:
    """Descriptive statistics for a trend analysis."""
    values = _as_array(series)
    n = values.size
    if n == 0:
        raise InsufficientData("At least 1 data point required")

    average = float(values.mean())
    std_dev = float(values.std())
    minimum = float(values.min())
    maximum = float(values.max())

    cv = std_dev / average * 100 if average != 0 else 0.0

    first, last = float(values[0]), float(values[-1])
    total_growth = (last - first) / first * 100 if first != 0 else 0.0
    average_growth = total_growth / (n - 1) if n > 1 else 0.0

    return TrendStatistics(
        count=n,
        average=average,
        std_dev=std_dev,
        minimum=minimum,
        maximum=maximum,
        range=maximum - minimum,
        coefficient_of_variation=cv,
        total_growth_percent=total_growth,
        average_growth_percent=average_growth,
    )


def _as_array(series: Sequence[float]) -> np.ndarray:
    values = np.asarray(list(series), dtype=float)
    if values.ndim != 1:
        raise InvalidInput("Series must be one-dimensional")
    if not np.all(np.isfinite(values)):
        raise InvalidInput("Series must contain only finite numbers")
    return values


def doubling_time(rate_percent: float) -> float:
    """
    Years for a quantity to double at a constant growth rate.

    A zero or negative rate never doubles, so the result is infinite.
    """
    rate = _validate_rate("rate", percent_to_fraction(rate_percent))
    if rate <= 0:
        return math.inf
    return math.log(2) / math.log1p(rate)


def rule_of_70(rate_percent: float) -> float:
    """Quick doubling-time estimate: 70 / rate."""
    rate_percent = require_finite("rate_percent", rate_percent)
    if rate_percent <= 0:
        return math.inf
    return 70 / rate_percent


@dataclass(frozen=True)
class RetirementOutlook:
    total_at_retirement: float
    total_needed: float
    difference: float
    is_shortfall: bool
    monthly_income: float
    projection: ProjectionSeries


def retirement_outlook(
    current_age: int,
    retirement_age: int,
    life_expectancy: int,
    current_savings: float,
    monthly_savings: float,
    expected_return_percent: float,
    monthly_expense: float,
) -> RetirementOutlook:
    """
    Compare the corpus at retirement with what retirement will cost.

    The corpus uses monthly compounding; the yearly projection grows savings
    until retirement and then draws down annual expenses.
    """
    current_age = require_period_count("current_age", current_age, allow_zero=True)
    retirement_age = require_period_count("retirement_age", retirement_age)
    life_expectancy = require_period_count("life_expectancy", life_expectancy)
    if retirement_age < current_age:
        raise InvalidInput("retirement_age must not be before current_age")
    if life_expectancy <= retirement_age:
        raise InvalidInput("life_expectancy must be after retirement_age")
    monthly_expense = require_non_negative("monthly_expense", monthly_expense)

    months_to_retirement = (retirement_age - current_age) * 12
    months_in_retirement = (life_expectancy - retirement_age) * 12

    total_at_retirement = future_value(
        current_savings,
        monthly_savings,
        percent_to_fraction(expected_return_percent) / 12,
        months_to_retirement,
    )
    total_needed = monthly_expense * months_in_retirement
    difference = total_at_retirement - total_needed

    # One point per year of age, current_age through life_expectancy
    projection = project_series(
        GrowthInput(
            principal=current_savings,
            periodic_contribution=monthly_savings * 12,
            periodic_rate=percent_to_fraction(expected_return_percent),
            periods=life_expectancy - current_age + 1,
        ),
        PhaseSchedule(
            pivot=retirement_age - current_age + 1,
            withdrawal=monthly_expense * 12,
        ),
    )

    return RetirementOutlook(
        total_at_retirement=total_at_retirement,
        total_needed=total_needed,
        difference=difference,
        is_shortfall=difference < 0,
        monthly_income=total_at_retirement / months_in_retirement,
        projection=projection,
    )
