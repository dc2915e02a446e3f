"""
Calculator API endpoints.

These endpoints accept calculator inputs, run the matching engine and
return plain, rounded results for the UI to chart, format and log.
"""

import logging
import math
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from calcdesk.calculations import amortization, growth, inventory, presets
from calcdesk.calculations.errors import CalculationError, InvalidInput
from calcdesk.calculations.numeric import round_currency
from calcdesk.calculations.tax import BracketTaxEngine, Slab, TaxResult
from calcdesk.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


def _money(value: float) -> float:
    return round_currency(value, settings.currency_decimals)


def _bad_request(calculator: str, error: CalculationError) -> HTTPException:
    logger.info(f"Rejected {calculator} input: {error}")
    return HTTPException(status_code=400, detail=str(error))


def _check_periods(name: str, periods: int) -> None:
    if periods > settings.max_periods:
        raise InvalidInput(
            f"{name} must be at most {settings.max_periods}, got {periods}"
        )


def _check_series(values: List[float]) -> None:
    if len(values) > settings.max_series_points:
        raise InvalidInput(
            f"At most {settings.max_series_points} data points allowed, got {len(values)}"
        )


# ============================================================================
# TAX
# ============================================================================


class SlabInput(BaseModel):
    """One slab row; omit upper_bound for the open-ended top slab."""

    lower_bound: float
    upper_bound: Optional[float] = None
    rate: float


class TaxInput(BaseModel):
    """Input for a bracket tax calculation."""

    amount: float
    deductions: float = 0.0
    regime: Optional[str] = None
    slabs: Optional[List[SlabInput]] = None


class SlabBreakdown(BaseModel):
    lower_bound: float
    upper_bound: Optional[float] = None
    rate: float
    taxable: float
    tax: float


class TaxResponse(BaseModel):
    regime: Optional[str] = None
    total_tax: float
    taxable_amount: float
    net_amount: float
    effective_rate_percent: float
    marginal_rate: float
    breakdown: List[SlabBreakdown]


def _upper(slab: Slab) -> Optional[float]:
    return None if slab.is_open else slab.upper_bound


def _tax_response(result: TaxResult, regime: Optional[str]) -> TaxResponse:
    return TaxResponse(
        regime=regime,
        total_tax=_money(result.total_tax),
        taxable_amount=_money(result.taxable_amount),
        net_amount=_money(result.net_amount),
        effective_rate_percent=round(result.effective_rate * 100, 4),
        marginal_rate=result.marginal_rate,
        breakdown=[
            SlabBreakdown(
                lower_bound=item.slab.lower_bound,
                upper_bound=_upper(item.slab),
                rate=item.slab.rate,
                taxable=_money(item.taxable_in_slab),
                tax=_money(item.tax_in_slab),
            )
            for item in result.per_slab
        ],
    )


@router.get("/tax/regimes")
async def list_tax_regimes():
    """List the built-in slab tables."""
    return [
        {
            "key": regime.key,
            "label": regime.label,
            "allows_deductions": regime.allows_deductions,
            "default": regime.key == settings.default_tax_regime,
            "slabs": [
                {"lower_bound": lower, "upper_bound": upper, "rate": rate}
                for lower, upper, rate in regime.rows
            ],
        }
        for regime in presets.TAX_REGIMES.values()
    ]


@router.post("/tax", response_model=TaxResponse)
async def calculate_tax(inputs: TaxInput):
    """Calculate progressive tax using a preset regime or explicit slabs."""
    try:
        if inputs.slabs:
            engine = BracketTaxEngine(
                [
                    Slab(
                        lower_bound=slab.lower_bound,
                        upper_bound=math.inf if slab.upper_bound is None else slab.upper_bound,
                        rate=slab.rate,
                    )
                    for slab in inputs.slabs
                ]
            )
            regime_key = None
            deductions = inputs.deductions
        else:
            regime = presets.get_tax_regime(inputs.regime or settings.default_tax_regime)
            engine = regime.engine()
            regime_key = regime.key
            deductions = inputs.deductions if regime.allows_deductions else 0.0

        result = engine.compute_tax(inputs.amount, deductions)
    except CalculationError as e:
        raise _bad_request("tax", e)

    return _tax_response(result, regime_key)


class RegimeComparisonInput(BaseModel):
    amount: float
    deductions: float = 0.0


@router.post("/tax/compare")
async def compare_tax_regimes(inputs: RegimeComparisonInput):
    """Calculate the same income under the old and new regimes."""
    try:
        results = presets.compare_regimes(inputs.amount, inputs.deductions)
    except CalculationError as e:
        raise _bad_request("tax comparison", e)

    responses = {key: _tax_response(result, key) for key, result in results.items()}
    cheapest = min(results, key=lambda key: results[key].total_tax)
    return {"regimes": responses, "lowest_tax_regime": cheapest}


# ============================================================================
# AMORTIZATION
# ============================================================================


class AmortizationRequest(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_rate_percent: float
    periods: int
    frequency: Optional[str] = None
    start_date: Optional[date] = None


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationRequest):
    """Generate loan amortization schedule."""
    try:
        _check_periods("periods", inputs.periods)
        per_year = presets.periods_per_year(
            inputs.frequency or settings.default_payment_frequency
        )
        schedule = amortization.compute_schedule(
            amortization.AmortizationInput(
                principal=inputs.principal,
                annual_rate_percent=inputs.annual_rate_percent,
                periods=inputs.periods,
                periods_per_year=per_year,
                start_date=inputs.start_date,
            )
        )
        loan_constant = amortization.calculate_loan_constant(
            inputs.principal, inputs.annual_rate_percent, inputs.periods, per_year
        )
    except CalculationError as e:
        raise _bad_request("amortization", e)

    return {
        "payment": _money(schedule.payment),
        "total_interest": _money(schedule.total_interest),
        "total_principal": _money(schedule.total_principal),
        "total_payment": _money(schedule.total_payment),
        "loan_constant": round(loan_constant, 6),
        "schedule": [
            {
                "period": row.period,
                "date": row.due_date.isoformat() if row.due_date else None,
                "beginning_balance": _money(row.beginning_balance),
                "payment": _money(row.payment),
                "interest": _money(row.interest_portion),
                "principal": _money(row.principal_portion),
                "ending_balance": _money(row.remaining_balance),
            }
            for row in schedule.rows
        ],
        "yearly": [
            {
                "year": year.year,
                "principal": _money(year.principal),
                "interest": _money(year.interest),
                "ending_balance": _money(year.ending_balance),
            }
            for year in amortization.summarize_by_year(schedule, per_year)
        ],
    }


# ============================================================================
# GROWTH
# ============================================================================


class FutureValueInput(BaseModel):
    principal: float = 0.0
    periodic_contribution: float = 0.0
    periodic_rate: float
    periods: int
    contribution_timing: str = "end"


@router.post("/future-value")
async def calculate_future_value(inputs: FutureValueInput):
    """Future value of a lump sum plus level contributions (savings, SIP)."""
    try:
        _check_periods("periods", inputs.periods)
        value = growth.future_value(
            inputs.principal,
            inputs.periodic_contribution,
            inputs.periodic_rate,
            inputs.periods,
            inputs.contribution_timing,
        )
    except CalculationError as e:
        raise _bad_request("future value", e)

    invested = inputs.principal + inputs.periodic_contribution * inputs.periods
    return {
        "future_value": _money(value),
        "total_invested": _money(invested),
        "returns": _money(value - invested),
    }


class CompoundGrowthInput(BaseModel):
    initial: float
    rate_percent: float
    years: int
    periods_per_year: int = 1


@router.post("/growth")
async def calculate_growth(inputs: CompoundGrowthInput):
    """Year-by-year compound growth (revenue, population)."""
    try:
        _check_periods("years", inputs.years)
        points = growth.compound_series(
            growth.SimpleGrowthInput(
                initial=inputs.initial,
                rate_percent=inputs.rate_percent,
                periods=inputs.years,
                periods_per_year=inputs.periods_per_year,
            )
        )
        doubling = growth.doubling_time(inputs.rate_percent)
    except CalculationError as e:
        raise _bad_request("growth", e)

    final = points[-1].value
    return {
        "final_value": _money(final),
        "total_growth": _money(final - inputs.initial),
        "growth_multiple": round(final / inputs.initial, 6) if inputs.initial else None,
        "doubling_time_years": None if math.isinf(doubling) else round(doubling, 2),
        "points": [
            {
                "year": point.year,
                "value": _money(point.value),
                "growth": _money(point.growth),
                "cumulative_growth": _money(point.cumulative_growth),
            }
            for point in points
        ],
    }


class ProjectionInput(BaseModel):
    principal: float
    periodic_contribution: float = 0.0
    periodic_rate: float
    periods: int
    pivot: Optional[int] = None
    withdrawal: float = 0.0
    rate_after_pivot: Optional[float] = None
    floor: float = 0.0


def _projection_points(series: growth.ProjectionSeries) -> List[dict]:
    return [
        {
            "period": point.period,
            "value": _money(point.value),
            "phase": point.phase,
            "clamped": point.clamped,
        }
        for point in series
    ]


@router.post("/projection")
async def calculate_projection(inputs: ProjectionInput):
    """Phased balance projection: contribute until the pivot, then withdraw."""
    try:
        _check_periods("periods", inputs.periods)
        phases = None
        if inputs.pivot is not None:
            phases = growth.PhaseSchedule(
                pivot=inputs.pivot,
                withdrawal=inputs.withdrawal,
                rate_after_pivot=inputs.rate_after_pivot,
                floor=inputs.floor,
            )
        series = growth.project_series(
            growth.GrowthInput(
                principal=inputs.principal,
                periodic_contribution=inputs.periodic_contribution,
                periodic_rate=inputs.periodic_rate,
                periods=inputs.periods,
            ),
            phases,
        )
        points = _projection_points(series)
    except CalculationError as e:
        raise _bad_request("projection", e)

    return {
        "final_value": points[-1]["value"] if points else _money(inputs.principal),
        "is_exhausted": series.is_exhausted,
        "exhausted_at": series.exhausted_at,
        "points": points,
    }


class RetirementInput(BaseModel):
    current_age: int
    retirement_age: int
    life_expectancy: int
    current_savings: float
    monthly_savings: float
    expected_return_percent: float
    monthly_expense: float


@router.post("/retirement")
async def calculate_retirement(inputs: RetirementInput):
    """Retirement corpus vs. cost, with a yearly balance projection."""
    try:
        _check_periods("life_expectancy", inputs.life_expectancy)
        outlook = growth.retirement_outlook(
            current_age=inputs.current_age,
            retirement_age=inputs.retirement_age,
            life_expectancy=inputs.life_expectancy,
            current_savings=inputs.current_savings,
            monthly_savings=inputs.monthly_savings,
            expected_return_percent=inputs.expected_return_percent,
            monthly_expense=inputs.monthly_expense,
        )
        points = _projection_points(outlook.projection)
    except CalculationError as e:
        raise _bad_request("retirement", e)

    for point in points:
        point["age"] = inputs.current_age + point["period"] - 1

    exhausted_at = outlook.projection.exhausted_at
    return {
        "total_at_retirement": _money(outlook.total_at_retirement),
        "total_needed": _money(outlook.total_needed),
        "difference": _money(outlook.difference),
        "is_shortfall": outlook.is_shortfall,
        "monthly_income": _money(outlook.monthly_income),
        "funds_exhausted_at_age": (
            None if exhausted_at is None else inputs.current_age + exhausted_at - 1
        ),
        "projection": points,
    }


class TrendInput(BaseModel):
    values: List[float]


@router.post("/trend")
async def calculate_trend(inputs: TrendInput):
    """Least-squares trend line and descriptive statistics."""
    try:
        _check_series(inputs.values)
        regression = growth.linear_regression(inputs.values)
        stats = growth.trend_statistics(inputs.values)
    except CalculationError as e:
        raise _bad_request("trend", e)

    return {
        "slope": regression.slope,
        "intercept": regression.intercept,
        "direction": "upward" if regression.slope > 0 else "downward",
        "statistics": {
            "average": stats.average,
            "std_dev": stats.std_dev,
            "min": stats.minimum,
            "max": stats.maximum,
            "range": stats.range,
            "coefficient_of_variation": stats.coefficient_of_variation,
            "total_growth_percent": stats.total_growth_percent,
            "average_growth_percent": stats.average_growth_percent,
        },
        "points": [
            {
                "period": index + 1,
                "actual": value,
                "trend": regression.predict(index),
                "deviation": value - regression.predict(index),
            }
            for index, value in enumerate(inputs.values)
        ],
    }


# ============================================================================
# INVENTORY
# ============================================================================


class EOQInput(BaseModel):
    annual_demand: float
    ordering_cost: float
    holding_cost_per_unit: float
    curve_points: int = 15


@router.post("/eoq")
async def calculate_eoq(inputs: EOQInput):
    """Economic order quantity with its cost curves."""
    try:
        _check_periods("curve_points", inputs.curve_points)
        result = inventory.eoq(
            inputs.annual_demand, inputs.ordering_cost, inputs.holding_cost_per_unit
        )
        curve = inventory.cost_curve(
            inputs.annual_demand,
            inputs.ordering_cost,
            inputs.holding_cost_per_unit,
            points=inputs.curve_points,
        )
    except CalculationError as e:
        raise _bad_request("eoq", e)

    return {
        "eoq": round(result.eoq, 4),
        "eoq_units": result.eoq_units,
        "orders_per_year": round(result.orders_per_year, 4),
        "cycle_days": round(result.cycle_days, 2),
        "average_inventory": round(result.average_inventory, 4),
        "total_ordering_cost": _money(result.total_ordering_cost),
        "total_holding_cost": _money(result.total_holding_cost),
        "total_cost": _money(result.total_cost),
        "curve": [
            {
                "quantity": round(point.quantity, 2),
                "ordering": _money(point.ordering_cost),
                "holding": _money(point.holding_cost),
                "total": _money(point.total_cost),
            }
            for point in curve
        ],
    }


class SafetyStockInput(BaseModel):
    method: str = inventory.MINMAX
    unit_cost: float = 0.0
    max_demand: float = 0.0
    avg_demand: float = 0.0
    max_lead_time: float = 0.0
    avg_lead_time: float = 0.0
    z_score: Optional[float] = None
    service_level: Optional[float] = None
    demand_std_dev: float = 0.0
    lead_time_std_dev: float = 0.0
    order_quantity: Optional[float] = None


@router.post("/safety-stock")
async def calculate_safety_stock(inputs: SafetyStockInput):
    """Safety stock by min-max or statistical method, plus reorder point."""
    try:
        z_score = inputs.z_score
        if z_score is None:
            service_level = 0.95 if inputs.service_level is None else inputs.service_level
            z_score = inventory.z_score_for_service_level(service_level)

        result = inventory.safety_stock(
            inputs.method,
            inputs.unit_cost,
            max_demand=inputs.max_demand,
            avg_demand=inputs.avg_demand,
            max_lead_time=inputs.max_lead_time,
            avg_lead_time=inputs.avg_lead_time,
            z_score=z_score,
            demand_std_dev=inputs.demand_std_dev,
            lead_time_std_dev=inputs.lead_time_std_dev,
        )

        levels = None
        if inputs.order_quantity is not None:
            levels = inventory.stock_levels(
                inputs.avg_demand,
                inputs.avg_lead_time,
                result.safety_stock_units,
                inputs.order_quantity,
            )
    except CalculationError as e:
        raise _bad_request("safety stock", e)

    response = {
        "method": result.method,
        "z_score": z_score,
        "safety_stock_units": result.safety_stock_units,
        "safety_stock_value": _money(result.safety_stock_value),
        "clamped": result.clamped,
    }
    if levels is not None:
        response["reorder_point"] = levels.reorder_point
        response["max_stock"] = levels.max_stock
        response["min_stock"] = levels.min_stock
    return response


class TurnoverInput(BaseModel):
    cost_of_goods_sold: float
    opening_stock: float
    closing_stock: float


@router.post("/inventory-turnover")
async def calculate_inventory_turnover(inputs: TurnoverInput):
    """Inventory turnover ratio and days on hand."""
    try:
        result = inventory.inventory_turnover(
            inputs.cost_of_goods_sold, inputs.opening_stock, inputs.closing_stock
        )
    except CalculationError as e:
        raise _bad_request("inventory turnover", e)

    return {
        "average_inventory": _money(result.average_inventory),
        "turnover": round(result.turnover, 4),
        "days_on_hand": round(result.days_on_hand, 2),
    }
