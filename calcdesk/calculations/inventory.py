"""
Inventory Optimization Calculations

Economic order quantity, safety stock (min-max and statistical), reorder
point and turnover formulas for the inventory & supply-chain calculators.
"""

import math
from dataclasses import dataclass
from typing import Dict, List

from scipy import stats

from calcdesk.calculations.errors import InvalidInput
from calcdesk.calculations.numeric import (
    clamp,
    require_finite,
    require_non_negative,
    require_period_count,
    require_positive,
    round_half_up,
)

MINMAX = "minmax"
STATISTICAL = "statistical"
SAFETY_STOCK_METHODS = (MINMAX, STATISTICAL)

DAYS_PER_YEAR = 365

# Standard z-scores for the service levels offered in the calculators
SERVICE_LEVEL_Z_SCORES: Dict[float, float] = {
    0.90: 1.28,
    0.95: 1.65,
    0.97: 1.88,
    0.99: 2.33,
}


@dataclass(frozen=True)
class EOQResult:
    eoq: float
    orders_per_year: float
    total_ordering_cost: float
    total_holding_cost: float
    total_cost: float
    average_inventory: float
    cycle_days: float

    @property
    def eoq_units(self) -> int:
        """Order size rounded to whole units."""
        return round_half_up(self.eoq)


@dataclass(frozen=True)
class CostPoint:
    quantity: float
    ordering_cost: float
    holding_cost: float
    total_cost: float


@dataclass(frozen=True)
class SafetyStockResult:
    method: str
    safety_stock_units: float
    safety_stock_value: float
    clamped: bool = False


@dataclass(frozen=True)
class StockLevels:
    safety_stock: float
    reorder_point: float
    max_stock: float
    min_stock: float


@dataclass(frozen=True)
class TurnoverResult:
    average_inventory: float
    turnover: float
    days_on_hand: float


def eoq(annual_demand: float, ordering_cost: float, holding_cost_per_unit: float) -> EOQResult:
    """
    Calculate the Economic Order Quantity.

    EOQ = sqrt(2DS / H). The derived costs use the unrounded EOQ, so the
    ordering and holding cost curves cross exactly at the optimum.

    Args:
        annual_demand: Units demanded per year (D)
        ordering_cost: Fixed cost per order (S)
        holding_cost_per_unit: Cost to hold one unit for a year (H)

    Raises:
        InvalidInput: Any input that is not strictly positive
    """
    demand = require_positive("annual_demand", annual_demand)
    order_cost = require_positive("ordering_cost", ordering_cost)
    holding_cost = require_positive("holding_cost_per_unit", holding_cost_per_unit)

    quantity = math.sqrt(2 * demand * order_cost / holding_cost)
    orders_per_year = demand / quantity
    total_ordering_cost = orders_per_year * order_cost
    average_inventory = quantity / 2
    total_holding_cost = average_inventory * holding_cost

    return EOQResult(
        eoq=quantity,
        orders_per_year=orders_per_year,
        total_ordering_cost=total_ordering_cost,
        total_holding_cost=total_holding_cost,
        total_cost=total_ordering_cost + total_holding_cost,
        average_inventory=average_inventory,
        cycle_days=DAYS_PER_YEAR / orders_per_year,
    )


def cost_curve(
    annual_demand: float,
    ordering_cost: float,
    holding_cost_per_unit: float,
    points: int = 15,
    span: float = 2.2,
) -> List[CostPoint]:
    """
    Ordering, holding and total cost for order sizes up to span * EOQ.

    Used to chart the cost curves around the optimum.
    """
    optimum = eoq(annual_demand, ordering_cost, holding_cost_per_unit)
    points = require_period_count("points", points)
    span = require_positive("span", span)

    step = optimum.eoq * span / points
    curve = []
    for index in range(1, points + 1):
        quantity = step * index
        ordering = annual_demand / quantity * ordering_cost
        holding = quantity / 2 * holding_cost_per_unit
        curve.append(CostPoint(quantity, ordering, holding, ordering + holding))
    return curve


def _safety_stock_min_max_raw(
    max_demand: float, avg_demand: float, max_lead_time: float, avg_lead_time: float
) -> float:
    max_demand = require_non_negative("max_demand", max_demand)
    avg_demand = require_non_negative("avg_demand", avg_demand)
    max_lead_time = require_non_negative("max_lead_time", max_lead_time)
    avg_lead_time = require_non_negative("avg_lead_time", avg_lead_time)
    return max_demand * max_lead_time - avg_demand * avg_lead_time


def safety_stock_min_max(
    max_demand: float, avg_demand: float, max_lead_time: float, avg_lead_time: float
) -> float:
    """
    Safety stock from worst-case vs average usage over the lead time.

    SS = (max demand * max lead time) - (avg demand * avg lead time),
    never below zero.
    """
    return clamp(
        _safety_stock_min_max_raw(max_demand, avg_demand, max_lead_time, avg_lead_time),
        0.0,
    )


def safety_stock_statistical(
    z_score: float,
    avg_lead_time: float,
    demand_std_dev: float,
    avg_demand: float,
    lead_time_std_dev: float,
) -> int:
    """
    Safety stock under variable demand and lead time.

    SS = Z * sqrt(avg_L * sd_d^2 + avg_d^2 * sd_L^2), rounded to whole units, ties up.
    """
    z_score = require_non_negative("z_score", z_score)
    avg_lead_time = require_non_negative("avg_lead_time", avg_lead_time)
    demand_std_dev = require_non_negative("demand_std_dev", demand_std_dev)
    avg_demand = require_non_negative("avg_demand", avg_demand)
    lead_time_std_dev = require_non_negative("lead_time_std_dev", lead_time_std_dev)

    variance = (
        avg_lead_time * demand_std_dev ** 2
        + avg_demand ** 2 * lead_time_std_dev ** 2
    )
    return round_half_up(z_score * math.sqrt(variance))


def safety_stock(
    method: str,
    unit_cost: float = 0.0,
    *,
    max_demand: float = 0.0,
    avg_demand: float = 0.0,
    max_lead_time: float = 0.0,
    avg_lead_time: float = 0.0,
    z_score: float = 0.0,
    demand_std_dev: float = 0.0,
    lead_time_std_dev: float = 0.0,
) -> SafetyStockResult:
    """Safety stock by the chosen method, with its carrying value."""
    unit_cost = require_non_negative("unit_cost", unit_cost)

    if method == MINMAX:
        raw = _safety_stock_min_max_raw(max_demand, avg_demand, max_lead_time, avg_lead_time)
        units = clamp(raw, 0.0)
        clamped = raw < 0
    elif method == STATISTICAL:
        units = safety_stock_statistical(
            z_score, avg_lead_time, demand_std_dev, avg_demand, lead_time_std_dev
        )
        clamped = False
    else:
        raise InvalidInput(
            f"method must be one of {SAFETY_STOCK_METHODS}, got {method!r}"
        )

    return SafetyStockResult(
        method=method,
        safety_stock_units=units,
        safety_stock_value=units * unit_cost,
        clamped=clamped,
    )


def z_score_for_service_level(service_level: float) -> float:
    """
    Z-score for a cycle service level given as a fraction (0.95 = 95%).

    Standard levels use the rounded table values; any other level uses the
    inverse normal distribution.
    """
    service_level = require_finite("service_level", service_level)
    if not 0 < service_level < 1:
        raise InvalidInput(f"service_level must be between 0 and 1, got {service_level}")

    for level, z in SERVICE_LEVEL_Z_SCORES.items():
        if math.isclose(level, service_level):
            return z
    return float(stats.norm.ppf(service_level))


def stock_levels(
    avg_demand: float,
    avg_lead_time: float,
    safety_stock_units: float,
    order_quantity: float,
) -> StockLevels:
    """Reorder point and the stock band it implies."""
    avg_demand = require_non_negative("avg_demand", avg_demand)
    avg_lead_time = require_non_negative("avg_lead_time", avg_lead_time)
    safety_stock_units = require_non_negative("safety_stock_units", safety_stock_units)
    order_quantity = require_non_negative("order_quantity", order_quantity)

    reorder_point = avg_demand * avg_lead_time + safety_stock_units
    return StockLevels(
        safety_stock=safety_stock_units,
        reorder_point=reorder_point,
        max_stock=reorder_point + order_quantity,
        min_stock=reorder_point - safety_stock_units,
    )


def inventory_turnover(
    cost_of_goods_sold: float,
    opening_stock: float,
    closing_stock: float,
    days: int = DAYS_PER_YEAR,
) -> TurnoverResult:
    """
    Inventory turnover ratio and days of inventory on hand.

    Raises:
        InvalidInput: Average inventory or COGS of zero (ratio undefined)
    """
    cogs = require_positive("cost_of_goods_sold", cost_of_goods_sold)
    opening_stock = require_non_negative("opening_stock", opening_stock)
    closing_stock = require_non_negative("closing_stock", closing_stock)
    days = require_period_count("days", days)

    average_inventory = (opening_stock + closing_stock) / 2
    if average_inventory == 0:
        raise InvalidInput("Average inventory must be positive")

    turnover = cogs / average_inventory
    return TurnoverResult(
        average_inventory=average_inventory,
        turnover=turnover,
        days_on_hand=days / turnover,
    )
