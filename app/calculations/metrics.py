"""
Property Metrics

Derives investment-performance analytics from a property's extracted
financial series and its static attributes. All functions are pure.
"""

import enum
import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

import numpy as np

from app.calculations.dates import ownership_years, parse_date, years_between
from app.calculations.irr import calculate_irr_percent
from app.calculations.ledger import FinancialSeries, iter_months
from app.calculations.rounding import round1, round2

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Average monthly income per unit of area
EFFICIENCY_HIGH = 500
EFFICIENCY_MEDIUM = 250

VOLATILITY_LOW = 0.1
VOLATILITY_MODERATE = 0.5

# Longest lease, in years
LEASE_SHORT_YEARS = 1
LEASE_MEDIUM_YEARS = 3


class Level(str, enum.Enum):
    """Efficiency and tenant-risk rating."""
    high = "high"
    medium = "medium"
    low = "low"


class VolatilityLevel(str, enum.Enum):
    """Income volatility rating."""
    low = "low"
    moderate = "moderate"
    high = "high"


@dataclass
class Tenant:
    """A tenant as read by the analytics; dates use the stored string format."""

    name: str
    income: Optional[float] = None  # monthly
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    area: Optional[float] = None
    indexation: Optional[str] = None


@dataclass
class PropertyAttributes:
    """Static property data used alongside the ledger."""

    area: float = 0.0
    purchase_price: float = 0.0
    purchase_date: str = ""
    exit_price: Optional[float] = None
    property_tax: Optional[float] = None
    insurance_cost: Optional[float] = None
    tenants: List[Tenant] = field(default_factory=list)


@dataclass
class AnalyticsResult:
    """Derived analytics for a property. None means "not computable"."""

    monthly_income: float
    monthly_expenses: float
    roi: float
    grm: Optional[float]
    income_per_m2: float
    cap_rate: float
    efficiency: float
    efficiency_level: Level
    payback: Optional[float]
    tenant_risk: Level
    volatility: float
    volatility_level: VolatilityLevel
    busy_months: int
    busy_percent: float
    rent_per_m2: float
    max_income_month: Optional[str]
    max_expense_month: Optional[str]
    income_expense_ratio: float
    tenant_concentration: float
    own_years: float
    irr: Optional[float]
    equity_multiple: Optional[float]
    break_even_occupancy: Optional[float]
    profit_per_m2: float

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["efficiency_level"] = self.efficiency_level.value
        data["tenant_risk"] = self.tenant_risk.value
        data["volatility_level"] = self.volatility_level.value
        return data


# === Base financial ratios ===


def capitalization_rate(income: float, expenses: float, price: float) -> float:
    """NOI over price, as a percentage. 0 without a price."""
    noi = income - expenses
    return round2(noi / price * 100) if price > 0 else 0.0


def cash_on_cash_return(cash_flow: float, cash_invested: float) -> float:
    return round2(cash_flow / cash_invested * 100) if cash_invested > 0 else 0.0


def gross_rent_multiplier(price: float, annual_income: float) -> Optional[float]:
    if price > 0 and annual_income > 0:
        return round2(price / annual_income)
    return None


def payback_period(investment: float, annual_cash_flow: float) -> Optional[float]:
    """Years to recover the investment from net cash flow."""
    if investment > 0 and annual_cash_flow > 0:
        return round2(investment / annual_cash_flow)
    return None


def equity_multiple(
    price: float, annual_cash_flow: float, holding_years: float, exit_price: float
) -> Optional[float]:
    if price > 0:
        return round2((annual_cash_flow * holding_years + exit_price) / price)
    return None


def break_even_occupancy(annual_income: float, annual_expense: float) -> Optional[float]:
    if annual_income > 0:
        return round1(annual_expense / annual_income * 100)
    return None


# === Efficiency ===


def income_per_square_meter(income: float, area: float) -> float:
    return round2(income / area) if area > 0 else 0.0


def efficiency_coefficient(income: float, area: float) -> float:
    return round2(income / max(area, 1))


def efficiency_rating(value: float) -> Level:
    if value >= EFFICIENCY_HIGH:
        return Level.high
    if value >= EFFICIENCY_MEDIUM:
        return Level.medium
    return Level.low


# === Risk ===


def income_volatility(incomes: List[float]) -> Tuple[float, VolatilityLevel]:
    """
    Coefficient of variation of the positive monthly incomes.

    Uses the population standard deviation.
    """
    positives = np.array([value for value in incomes if value > 0], dtype=float)
    if positives.size == 0:
        return 0.0, VolatilityLevel.low

    mean = float(positives.mean())
    if mean == 0:
        return 0.0, VolatilityLevel.low

    std_dev = float(np.sqrt(np.mean((positives - mean) ** 2)))
    volatility = round2(std_dev / mean)

    if volatility < VOLATILITY_LOW:
        level = VolatilityLevel.low
    elif volatility < VOLATILITY_MODERATE:
        level = VolatilityLevel.moderate
    else:
        level = VolatilityLevel.high

    return volatility, level


def tenant_risk_assessment(tenants: List[Tenant], today: Optional[date] = None) -> Level:
    """
    Rate tenant risk by the longest lease on file.

    Leases without a parseable start date are ignored; a missing or
    unparseable end date means the lease runs to today.
    """
    today = today or date.today()
    max_years = 0.0

    for tenant in tenants:
        start = parse_date(tenant.start_date)
        if start is None:
            continue
        end = parse_date(tenant.end_date) or today
        max_years = max(max_years, years_between(start, end))

    if max_years < LEASE_SHORT_YEARS:
        return Level.high
    if max_years < LEASE_MEDIUM_YEARS:
        return Level.medium
    return Level.low


def tenant_concentration(tenants: List[Tenant]) -> float:
    """Share of the largest tenant in total tenant income, as a percentage."""
    incomes = [tenant.income or 0 for tenant in tenants]
    total = sum(incomes)
    if total <= 0:
        return 0.0
    return round1(max(incomes) / total * 100)


# === Ledger scans ===


def format_month(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def peak_months(
    ledger,
    include_maintenance: bool = True,
    include_operating: bool = True,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Find the months with the highest income and the highest expense.

    Scans the whole ledger chronologically; ties keep the earliest month.
    A month is only reported if its value is positive.
    """
    max_income, income_month = 0.0, None
    max_expense, expense_month = 0.0, None

    for year, month, record in iter_months(ledger):
        income = record.income
        if income > max_income:
            max_income, income_month = income, (year, month)

        expense = record.expense(include_maintenance, include_operating)
        if expense > max_expense:
            max_expense, expense_month = expense, (year, month)

    return (
        format_month(*income_month) if income_month else None,
        format_month(*expense_month) if expense_month else None,
    )


def net_cash_flow_total(ledger, year: Optional[int] = None) -> float:
    """Income minus maintenance, operating and other expenses over a scope."""
    total = 0.0
    for _, _, record in iter_months(ledger, year):
        total += record.income - record.expense()
    return round2(total)


# === Full analytics ===


def compute_all_metrics(
    series: FinancialSeries,
    attrs: PropertyAttributes,
    ledger=None,
    include_maintenance: bool = True,
    include_operating: bool = True,
    today: Optional[date] = None,
) -> AnalyticsResult:
    """
    Compute the full analytics record for a property.

    Args:
        series: Extracted series for the requested scope
        attrs: Static property attributes
        ledger: Full ledger, scanned for peak income/expense months
        include_maintenance: Count maintenance expenses
        include_operating: Count operating expenses
        today: Reference date for ownership and lease durations

    Returns:
        AnalyticsResult
    """
    today = today or date.today()
    incomes = series.incomes

    annual_income = series.total_income()
    annual_expense = series.total_expenses(include_maintenance, include_operating)

    months_for_average = max(len(incomes), 1)
    avg_income = round2(annual_income / months_for_average)
    avg_expense = round2(annual_expense / months_for_average)

    area = attrs.area if attrs.area and attrs.area > 0 else 1
    price = attrs.purchase_price or 0.0
    exit_price = attrs.exit_price or 0.0
    fixed_costs = series.property_tax + series.insurance_cost

    own_years = ownership_years(attrs.purchase_date, today)

    # Occupancy
    busy_months = sum(1 for value in incomes if value > 0)
    total_months = math.floor(own_years * 12)
    busy_percent = round1(busy_months / total_months * 100) if total_months > 0 else 0.0

    max_income_month, max_expense_month = peak_months(
        ledger, include_maintenance, include_operating
    )

    rent_per_m2 = income_per_square_meter(avg_income, area)
    income_expense_ratio = round2(annual_income / annual_expense) if annual_expense > 0 else 0.0
    profit_per_m2 = round2((avg_income - avg_expense) / area) if area > 0 else 0.0

    net_cash_flow = (avg_income - avg_expense) * 12
    holding_years = own_years if own_years > 0 else 1

    efficiency = efficiency_coefficient(avg_income, area)
    volatility, volatility_level = income_volatility(incomes)

    return AnalyticsResult(
        monthly_income=avg_income,
        monthly_expenses=avg_expense,
        roi=cash_on_cash_return(net_cash_flow, price),
        grm=gross_rent_multiplier(price, annual_income),
        income_per_m2=income_per_square_meter(avg_income, area),
        cap_rate=capitalization_rate(
            income=avg_income * 12,
            expenses=avg_expense * 12 + fixed_costs,
            price=price,
        ),
        efficiency=efficiency,
        efficiency_level=efficiency_rating(efficiency),
        payback=payback_period(price, net_cash_flow),
        tenant_risk=tenant_risk_assessment(attrs.tenants, today),
        volatility=volatility,
        volatility_level=volatility_level,
        busy_months=busy_months,
        busy_percent=busy_percent,
        rent_per_m2=rent_per_m2,
        max_income_month=max_income_month,
        max_expense_month=max_expense_month,
        income_expense_ratio=income_expense_ratio,
        tenant_concentration=tenant_concentration(attrs.tenants),
        own_years=own_years,
        irr=calculate_irr_percent(price, net_cash_flow, holding_years, exit_price),
        equity_multiple=equity_multiple(price, net_cash_flow, holding_years, exit_price),
        break_even_occupancy=break_even_occupancy(annual_income, annual_expense),
        profit_per_m2=profit_per_m2,
    )
