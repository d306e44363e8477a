"""
Stateless calculation API endpoints.

These endpoints accept a ledger and property attributes in the request body
and return calculated results without touching the database.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from app.calculations import irr
from app.calculations.ledger import MonthRecord, extract_financials
from app.calculations.metrics import (
    AnalyticsResult,
    PropertyAttributes,
    Tenant,
    compute_all_metrics,
)
from app.calculations.rounding import round2

router = APIRouter()


class MonthInput(BaseModel):
    """One month of the ledger. Field names follow the stored format."""

    income: Optional[float] = Field(None, ge=0)
    income_variable: Optional[float] = Field(None, ge=0)
    expenses_direct: Optional[float] = Field(None, ge=0)
    expenses_admin: Optional[float] = Field(None, ge=0)
    expenses_maintenance: Optional[float] = Field(None, ge=0)
    expenses_utilities: Optional[float] = Field(None, ge=0)
    expenses_financial: Optional[float] = Field(None, ge=0)
    expenses_operational: Optional[float] = Field(None, ge=0)
    expenses_other: Optional[float] = Field(None, ge=0)

    def to_record(self) -> MonthRecord:
        return MonthRecord.from_dict(self.model_dump(exclude_none=True))


class TenantInput(BaseModel):
    """Tenant schema. Dates as "dd.mm.yyyy" or "yyyy-mm-dd"."""

    name: str
    income: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    area: Optional[float] = None
    indexation: Optional[str] = None


class AnalyticsInput(BaseModel):
    """Input for a stateless analytics calculation."""

    months: Dict[str, Dict[str, MonthInput]] = {}
    area: float = 0.0
    purchase_price: float = Field(0.0, ge=0)
    purchase_date: str = ""
    exit_price: Optional[float] = None
    property_tax: Optional[float] = None
    insurance_cost: Optional[float] = None
    tenants: List[TenantInput] = []

    # Scope and toggles
    year: Optional[int] = None
    include_maintenance: bool = True
    include_operating: bool = True

    def ledger(self) -> Dict[str, Dict[str, MonthRecord]]:
        return {
            year: {month: data.to_record() for month, data in months.items()}
            for year, months in self.months.items()
        }

    def attributes(self) -> PropertyAttributes:
        return PropertyAttributes(
            area=self.area,
            purchase_price=self.purchase_price,
            purchase_date=self.purchase_date,
            exit_price=self.exit_price,
            property_tax=self.property_tax,
            insurance_cost=self.insurance_cost,
            tenants=[Tenant(**t.model_dump()) for t in self.tenants],
        )


class AnalyticsResponse(BaseModel):
    """Derived property analytics. Null fields could not be computed."""

    monthly_income: float
    monthly_expenses: float
    roi: float
    grm: Optional[float] = None
    income_per_m2: float
    cap_rate: float
    efficiency: float
    efficiency_level: str
    payback: Optional[float] = None
    tenant_risk: str
    volatility: float
    volatility_level: str
    busy_months: int
    busy_percent: float
    rent_per_m2: float
    max_income_month: Optional[str] = None
    max_expense_month: Optional[str] = None
    income_expense_ratio: float
    tenant_concentration: float
    own_years: float
    irr: Optional[float] = None
    equity_multiple: Optional[float] = None
    break_even_occupancy: Optional[float] = None
    profit_per_m2: float

    @classmethod
    def from_result(cls, result: AnalyticsResult) -> "AnalyticsResponse":
        return cls(**result.to_dict())


def run_analytics(
    ledger,
    attrs: PropertyAttributes,
    year: Optional[int] = None,
    include_maintenance: bool = True,
    include_operating: bool = True,
) -> AnalyticsResponse:
    """Extract the scope and compute analytics for one property snapshot."""
    series = extract_financials(
        ledger,
        year=year,
        property_tax=attrs.property_tax,
        insurance_cost=attrs.insurance_cost,
    )
    result = compute_all_metrics(
        series,
        attrs,
        ledger=ledger,
        include_maintenance=include_maintenance,
        include_operating=include_operating,
    )
    return AnalyticsResponse.from_result(result)


@router.post("/analytics", response_model=AnalyticsResponse)
async def calculate_analytics(inputs: AnalyticsInput):
    """Calculate analytics for a ledger and property attributes."""
    return run_analytics(
        inputs.ledger(),
        inputs.attributes(),
        year=inputs.year,
        include_maintenance=inputs.include_maintenance,
        include_operating=inputs.include_operating,
    )


class IRRInput(BaseModel):
    """Input for a holding-period IRR calculation."""

    investment: float
    annual_cash_flow: float
    holding_years: float = Field(1.0, gt=0)
    exit_price: Optional[float] = None


class IRRResponse(BaseModel):
    """Holding-period IRR. ``irr`` is null when no rate exists in range."""

    irr: Optional[float] = None
    converged: Optional[bool] = None
    iterations: Optional[int] = None
    multiple: Optional[float] = None


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Solve the IRR and report convergence."""
    solution = irr.solve_irr(
        inputs.investment,
        inputs.annual_cash_flow,
        inputs.holding_years,
        inputs.exit_price,
    )

    multiple = None
    if inputs.investment > 0:
        years = int(inputs.holding_years) if inputs.holding_years >= 1 else 1
        cash_flows = [-inputs.investment] + [inputs.annual_cash_flow] * years
        cash_flows[-1] += inputs.exit_price or 0
        multiple = round2(irr.calculate_multiple(cash_flows))

    if solution is None:
        return IRRResponse(multiple=multiple)

    return IRRResponse(
        irr=solution.percent,
        converged=solution.converged,
        iterations=solution.iterations,
        multiple=multiple,
    )
