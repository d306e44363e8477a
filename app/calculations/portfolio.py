"""
Portfolio Summary

Rolls the all-years analytics of several properties up into portfolio totals.
"""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from app.calculations.ledger import extract_financials
from app.calculations.metrics import AnalyticsResult, PropertyAttributes, compute_all_metrics
from app.calculations.rounding import round2


@dataclass
class PortfolioSummary:
    """Totals and averages across a set of properties."""

    total_objects: int
    total_value: float
    total_area: float
    total_income: float
    total_expenses: float
    total_profit: float
    average_roi: float
    average_cap_rate: float
    average_occupancy: float
    average_holding_years: float
    total_exit_value: float
    average_price_per_m2: float

    def to_dict(self) -> Dict:
        return asdict(self)


def _average(values: List[float]) -> float:
    return round2(sum(values) / len(values)) if values else 0.0


def summarize_portfolio(
    properties: Iterable[Tuple[Dict, PropertyAttributes]],
    today: Optional[date] = None,
) -> PortfolioSummary:
    """
    Summarize a portfolio.

    Args:
        properties: (ledger, attributes) pairs, one per property
        today: Reference date for ownership durations

    Returns:
        PortfolioSummary. Expenses here include every expense category the
        analytics carry plus annual property tax and insurance.
    """
    analytics: List[AnalyticsResult] = []
    total_value = 0.0
    total_area = 0.0
    total_income = 0.0
    total_expenses = 0.0
    total_exit_value = 0.0

    for ledger, attrs in properties:
        series = extract_financials(
            ledger,
            property_tax=attrs.property_tax,
            insurance_cost=attrs.insurance_cost,
        )
        analytics.append(compute_all_metrics(series, attrs, ledger=ledger, today=today))

        total_value += attrs.purchase_price or 0
        total_area += attrs.area or 0
        total_income += series.total_income()
        total_expenses += series.total_expenses() + series.property_tax + series.insurance_cost
        total_exit_value += attrs.exit_price or 0

    return PortfolioSummary(
        total_objects=len(analytics),
        total_value=round2(total_value),
        total_area=round2(total_area),
        total_income=round2(total_income),
        total_expenses=round2(total_expenses),
        total_profit=round2(total_income - total_expenses),
        average_roi=_average([a.roi for a in analytics]),
        average_cap_rate=_average([a.cap_rate for a in analytics]),
        average_occupancy=_average([a.busy_percent for a in analytics]),
        average_holding_years=_average([a.own_years for a in analytics]),
        total_exit_value=round2(total_exit_value),
        average_price_per_m2=round2(total_value / total_area) if total_area > 0 else 0.0,
    )
