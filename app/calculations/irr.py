"""
IRR and NPV Calculations

Holding-period IRR solved by bisection on NPV. The cash-flow model is an
annual cash flow received for each whole year held plus an optional exit
price at the end of the holding period.
"""

import logging
import math
from typing import List, NamedTuple, Optional

from app.calculations.rounding import round2

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
TOLERANCE = 1e-4
LOW_RATE = -0.99
HIGH_RATE = 10.0


class IRRSolution(NamedTuple):
    """Result of the bisection search."""

    rate: float  # decimal, e.g. 0.15 for 15%
    converged: bool
    iterations: int

    @property
    def percent(self) -> float:
        return round2(self.rate * 100)


def calculate_npv(cash_flows: List[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of periodic cash flows.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow),
            the first one at period 0
        discount_rate: Periodic discount rate (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    npv = 0.0
    for period, cf in enumerate(cash_flows):
        npv += cf / ((1 + discount_rate) ** period)
    return npv


def holding_period_npv(
    rate: float,
    investment: float,
    annual_cash_flow: float,
    holding_years: float,
    exit_price: float = 0.0,
) -> float:
    """
    NPV of an investment held for ``holding_years``.

    Annual cash flows are discounted for each whole year held. A holding
    period shorter than a year gets a single prorated cash flow instead.
    The exit price, if any, is discounted at the (fractional) holding period.
    """
    discount = 1 + rate
    npv = -investment

    if holding_years < 1:
        npv += annual_cash_flow * holding_years / discount ** holding_years
    else:
        for year in range(1, int(holding_years) + 1):
            npv += annual_cash_flow / discount ** year

    if exit_price > 0:
        npv += exit_price / discount ** holding_years

    return npv


def solve_irr(
    investment: float,
    annual_cash_flow: float,
    holding_years: float,
    exit_price: Optional[float] = None,
) -> Optional[IRRSolution]:
    """
    Solve the holding-period IRR by bisection.

    Args:
        investment: Initial investment (purchase price)
        annual_cash_flow: Net cash flow per year
        holding_years: Holding period in years
        exit_price: Projected sale price at the end of the holding period

    Returns:
        IRRSolution, or None when no rate can be determined (no investment,
        no positive return, no sign change within [-99%, 1000%], or a holding
        period too long to discount in floating point).
        If the iteration budget runs out the final midpoint is returned
        with converged=False.
    """
    exit_price = exit_price or 0.0

    if investment <= 0:
        return None
    if annual_cash_flow <= 0 and exit_price <= 0:
        return None

    def npv(rate: float) -> float:
        return holding_period_npv(rate, investment, annual_cash_flow, holding_years, exit_price)

    low, high = LOW_RATE, HIGH_RATE
    try:
        npv_low = npv(low)
        npv_high = npv(high)
    except (OverflowError, ZeroDivisionError):
        # Discount factors leave float range over very long holding periods
        logger.debug(f"IRR bracket not representable for a {holding_years:.1f} year holding period")
        return None

    if math.isnan(npv_low) or math.isnan(npv_high) or (npv_low > 0) == (npv_high > 0):
        logger.debug(
            f"IRR bracket has no sign change: NPV({low})={npv_low:.4f}, NPV({high})={npv_high:.4f}"
        )
        return None

    for iteration in range(1, MAX_ITERATIONS + 1):
        mid = (low + high) / 2
        npv_mid = npv(mid)

        if abs(npv_mid) < TOLERANCE:
            return IRRSolution(rate=mid, converged=True, iterations=iteration)

        if npv_mid > 0:
            low = mid
        else:
            high = mid

    logger.debug(f"IRR did not reach tolerance after {MAX_ITERATIONS} iterations")
    return IRRSolution(rate=(low + high) / 2, converged=False, iterations=MAX_ITERATIONS)


def calculate_irr_percent(
    investment: float,
    annual_cash_flow: float,
    holding_years: float,
    exit_price: Optional[float] = None,
) -> Optional[float]:
    """Holding-period IRR as a percentage rounded to 2 decimals, or None."""
    solution = solve_irr(investment, annual_cash_flow, holding_years, exit_price)
    return solution.percent if solution is not None else None


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        raise ValueError("No investment (outflows) found")

    return total_inflows / total_outflows
