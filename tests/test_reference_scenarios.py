"""
Reference Scenario Tests

Worked examples shown in the calculators' info panels, plus the properties
every engine must keep for any valid input.
"""

import pytest

from calcdesk.calculations.amortization import (
    AmortizationInput,
    calculate_payment,
    compute_schedule,
)
from calcdesk.calculations.growth import GrowthInput, project_series
from calcdesk.calculations.inventory import eoq, safety_stock_min_max
from calcdesk.calculations.presets import TAX_REGIMES
from calcdesk.calculations.tax import compute_tax, slabs_from_rows


# =============================================================================
# WORKED EXAMPLES
# =============================================================================

NEW_REGIME_SLABS = slabs_from_rows(
    [
        (0, 600_000, 0),
        (600_000, 1_200_000, 2.5),
        (1_200_000, 2_400_000, 12.5),
        (2_400_000, 3_600_000, 22.5),
        (3_600_000, 6_000_000, 27.5),
        (6_000_000, None, 35),
    ]
)


class TestWorkedExamples:
    """Examples quoted to users must reproduce exactly."""

    def test_emi_example(self):
        """Rs. 10,00,000 at 12% for 60 months."""
        schedule = compute_schedule(
            AmortizationInput(principal=1_000_000, annual_rate_percent=12, periods=60)
        )
        assert schedule.payment == pytest.approx(22244.45, abs=0.01)
        assert schedule.rows[0].interest_portion == pytest.approx(10_000)
        assert schedule.rows[-1].remaining_balance == 0

    def test_new_regime_tax_example(self):
        """Rs. 12,00,000 under the new regime."""
        result = compute_tax(1_200_000, NEW_REGIME_SLABS)
        assert result.total_tax == 15_000
        assert result.effective_rate * 100 == pytest.approx(1.25)

    def test_eoq_example(self):
        """D = 10,000 units, S = Rs. 500/order, H = Rs. 12/unit/year."""
        result = eoq(annual_demand=10_000, ordering_cost=500, holding_cost_per_unit=12)
        assert result.eoq_units == 913
        assert result.total_ordering_cost == pytest.approx(5477, abs=1)
        assert result.total_holding_cost == pytest.approx(5477, abs=1)

    def test_min_max_safety_stock_example(self):
        """(80 x 10) - (50 x 7) = 450 units."""
        assert safety_stock_min_max(
            max_demand=80, avg_demand=50, max_lead_time=10, avg_lead_time=7
        ) == 450


# =============================================================================
# PROPERTIES
# =============================================================================

LOAN_CASES = [
    (1_000_000, 12, 60),
    (5_000, 0, 12),
    (250_000, 7.35, 180),
    (4_000_000, 8.5, 240),
    (999.99, 36, 7),
    (75_000, 0.01, 600),
    (1, 99, 1),
]


class TestAmortizationProperties:
    """Properties that hold for every valid loan."""

    @pytest.mark.parametrize("principal, rate, periods", LOAN_CASES)
    def test_principal_portions_sum_to_principal(self, principal, rate, periods):
        """Principal portions add back up to the loan amount."""
        schedule = compute_schedule(AmortizationInput(principal, rate, periods))
        assert abs(schedule.total_principal - principal) < 0.01

    @pytest.mark.parametrize("principal, rate, periods", LOAN_CASES)
    def test_schedule_ends_at_exactly_zero(self, principal, rate, periods):
        """The final row leaves a balance of exactly zero."""
        schedule = compute_schedule(AmortizationInput(principal, rate, periods))
        assert schedule.rows[-1].remaining_balance == 0.0

    @pytest.mark.parametrize("principal, rate, periods", LOAN_CASES)
    def test_balance_monotonic_and_non_negative(self, principal, rate, periods):
        """Balances never rise and never go negative."""
        schedule = compute_schedule(AmortizationInput(principal, rate, periods))
        balances = [row.remaining_balance for row in schedule.rows]
        assert all(b >= 0 for b in balances)
        assert all(b2 <= b1 for b1, b2 in zip(balances, balances[1:]))

    @pytest.mark.parametrize("principal, periods", [(100_000, 7), (1_234.56, 13), (10, 3)])
    def test_zero_rate_payment_is_principal_over_periods(self, principal, periods):
        """Interest-free loans split the principal evenly."""
        assert calculate_payment(principal, 0, periods) == principal / periods


class TestTaxProperties:
    """Properties that hold for every valid slab table."""

    @pytest.mark.parametrize("regime_key", sorted(TAX_REGIMES))
    def test_tax_is_monotonic_in_amount(self, regime_key):
        """Earning more never lowers the tax."""
        engine = TAX_REGIMES[regime_key].engine()
        previous = -1.0
        for amount in range(0, 8_000_001, 50_000):
            tax = engine.compute_tax(amount).total_tax
            assert tax >= previous
            previous = tax

    @pytest.mark.parametrize("regime_key", sorted(TAX_REGIMES))
    def test_amount_inside_zero_rate_slab_pays_nothing(self, regime_key):
        """Income within the first slab is tax free."""
        engine = TAX_REGIMES[regime_key].engine()
        first = engine.slabs[0]
        assert first.rate == 0
        for amount in (0, 1, first.upper_bound / 2, first.upper_bound):
            assert engine.compute_tax(amount).total_tax == 0


class TestGrowthProperties:

    @pytest.mark.parametrize("principal, rate, periods", [(1000, 0.05, 10), (2500, 0.0, 30), (1, 0.12, 600)])
    def test_no_contribution_matches_compound_interest(self, principal, rate, periods):
        """A projection with no contributions is compound interest."""
        series = project_series(GrowthInput(principal, 0, rate, periods))
        assert series.final_value == pytest.approx(principal * (1 + rate) ** periods)


class TestEOQProperties:

    @pytest.mark.parametrize(
        "demand, ordering, holding",
        [(10_000, 500, 12), (1, 1, 1), (365_000, 75.5, 0.35), (12, 9_000, 40)],
    )
    def test_ordering_and_holding_costs_cross(self, demand, ordering, holding):
        """Ordering and holding costs meet at the EOQ."""
        result = eoq(demand, ordering, holding)
        assert result.total_ordering_cost == pytest.approx(result.total_holding_cost, rel=1e-9)
