"""
Property management API endpoints.

Covers the property record, its monthly ledger and its tenants, plus the
analytics and cash-flow views computed from a stored property.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from app.api.calculations import (
    AnalyticsResponse,
    MonthInput,
    TenantInput,
    run_analytics,
)
from app.api.dependencies import get_repository
from app.calculations.ledger import denormalize_ledger, ledger_years, normalize_ledger
from app.calculations.metrics import net_cash_flow_total
from app.db.models import Property, PropertyCondition, PropertyStatus, PropertyType
from app.services.repository import PropertyRepository

router = APIRouter()


class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    name: str
    property_type: PropertyType = PropertyType.commercial
    status: PropertyStatus = PropertyStatus.vacant
    condition: Optional[PropertyCondition] = None
    address: str = ""
    source: Optional[str] = None
    icon: Optional[str] = None
    area: float = Field(0.0, ge=0)
    purchase_price: float = Field(0.0, ge=0)
    purchase_date: str = ""
    property_tax: Optional[float] = Field(None, ge=0)
    insurance_cost: Optional[float] = Field(None, ge=0)
    exit_price: Optional[float] = Field(None, ge=0)
    months: Dict[str, Dict[str, MonthInput]] = {}
    tenants: List[TenantInput] = []


class PropertyUpdate(BaseModel):
    """Schema for updating a property."""

    name: Optional[str] = None
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    condition: Optional[PropertyCondition] = None
    address: Optional[str] = None
    source: Optional[str] = None
    icon: Optional[str] = None
    area: Optional[float] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    purchase_date: Optional[str] = None
    property_tax: Optional[float] = Field(None, ge=0)
    insurance_cost: Optional[float] = Field(None, ge=0)
    exit_price: Optional[float] = Field(None, ge=0)
    months: Optional[Dict[str, Dict[str, MonthInput]]] = None


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: str
    name: str
    property_type: str
    status: str
    condition: Optional[str] = None
    address: str
    source: Optional[str] = None
    icon: Optional[str] = None
    area: float
    purchase_price: float
    purchase_date: str
    property_tax: Optional[float] = None
    insurance_cost: Optional[float] = None
    exit_price: Optional[float] = None
    months: Dict[str, Dict[str, Dict[str, float]]]
    tenants: List[TenantInput]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: List[PropertyResponse]
    total: int


class CashFlowResponse(BaseModel):
    """Net cash flow (income minus expenses) for a scope."""

    property_id: str
    year: Optional[int] = None
    years: List[int]
    net_cash_flow: float


def property_to_response(prop: Property) -> PropertyResponse:
    """Convert Property model to response schema."""
    return PropertyResponse(
        id=prop.id,
        name=prop.name,
        property_type=prop.property_type or PropertyType.commercial.value,
        status=prop.status or PropertyStatus.vacant.value,
        condition=prop.condition,
        address=prop.address or "",
        source=prop.source,
        icon=prop.icon,
        area=prop.area or 0.0,
        purchase_price=prop.purchase_price or 0.0,
        purchase_date=prop.purchase_date or "",
        property_tax=prop.property_tax,
        insurance_cost=prop.insurance_cost,
        exit_price=prop.exit_price,
        months=prop.months or {},
        tenants=[
            TenantInput(
                name=t.name,
                income=t.income,
                start_date=t.start_date,
                end_date=t.end_date,
                area=t.area,
                indexation=t.indexation,
            )
            for t in prop.tenants
        ],
        created_at=prop.created_at.isoformat() if prop.created_at else None,
        updated_at=prop.updated_at.isoformat() if prop.updated_at else None,
    )


def _months_to_storage(months: Dict[str, Dict[str, MonthInput]]) -> Dict:
    """Stored ledger form with zero-padded month keys."""
    return denormalize_ledger(normalize_ledger({
        year: {month: data.to_record() for month, data in entries.items()}
        for year, entries in months.items()
    }))


def _enum_columns(data: Dict) -> Dict:
    """Store enum members by value."""
    for key in ("property_type", "status", "condition"):
        if data.get(key) is not None:
            data[key] = data[key].value
    return data


@router.get("/", response_model=PropertyListResponse)
async def list_properties(repo: PropertyRepository = Depends(get_repository)):
    """List all properties."""
    properties = repo.list()
    return PropertyListResponse(
        properties=[property_to_response(p) for p in properties],
        total=len(properties),
    )


@router.post("/", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    repo: PropertyRepository = Depends(get_repository),
):
    """Create a new property. Its id is assigned from the next free number."""
    data = _enum_columns(property_data.model_dump(exclude={"months", "tenants"}))
    data["months"] = _months_to_storage(property_data.months)
    tenants = [t.model_dump() for t in property_data.tenants]

    return property_to_response(repo.add(data, tenants))


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    repo: PropertyRepository = Depends(get_repository),
):
    """Get a property by ID."""
    return property_to_response(repo.get(property_id))


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    repo: PropertyRepository = Depends(get_repository),
):
    """Update a property. Only provided fields change."""
    update_data = _enum_columns(property_data.model_dump(exclude_unset=True, exclude={"months"}))
    if property_data.months is not None:
        update_data["months"] = _months_to_storage(property_data.months)

    return property_to_response(repo.update(property_id, update_data))


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    repo: PropertyRepository = Depends(get_repository),
):
    """Delete a property with its ledger and tenants."""
    repo.delete(property_id)
    return {"deleted": True, "id": property_id}


# === Ledger ===


@router.put("/{property_id}/months/{year}/{month}", response_model=PropertyResponse)
async def set_month(
    property_id: str,
    year: int,
    month: int,
    month_data: MonthInput,
    repo: PropertyRepository = Depends(get_repository),
):
    """Create or replace one month of the ledger."""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")

    return property_to_response(
        repo.set_month(property_id, year, month, month_data.to_record())
    )


@router.delete("/{property_id}/years/{year}")
async def delete_year(
    property_id: str,
    year: int,
    repo: PropertyRepository = Depends(get_repository),
):
    """Remove a whole year from the ledger."""
    if not repo.delete_year(property_id, year):
        raise HTTPException(status_code=404, detail="Year not found")
    return {"deleted": True, "id": property_id, "year": year}


# === Tenants ===


@router.post("/{property_id}/tenants", response_model=PropertyResponse, status_code=201)
async def add_tenant(
    property_id: str,
    tenant: TenantInput,
    repo: PropertyRepository = Depends(get_repository),
):
    """Append a tenant."""
    repo.add_tenant(property_id, tenant.model_dump())
    return property_to_response(repo.get(property_id))


@router.delete("/{property_id}/tenants/{index}")
async def remove_tenant(
    property_id: str,
    index: int,
    repo: PropertyRepository = Depends(get_repository),
):
    """Remove the tenant at a position in the tenant list."""
    try:
        name = repo.remove_tenant(property_id, index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return {"deleted": True, "id": property_id, "tenant": name}


# === Derived views ===


@router.get("/{property_id}/analytics", response_model=AnalyticsResponse)
async def property_analytics(
    property_id: str,
    year: Optional[int] = None,
    include_maintenance: bool = True,
    include_operating: bool = True,
    repo: PropertyRepository = Depends(get_repository),
):
    """
    Analytics for a stored property.

    Without ``year`` every year of the ledger is in scope.
    """
    ledger, attrs = repo.snapshot(property_id)
    return run_analytics(
        ledger,
        attrs,
        year=year,
        include_maintenance=include_maintenance,
        include_operating=include_operating,
    )


@router.get("/{property_id}/cashflow", response_model=CashFlowResponse)
async def property_cashflow(
    property_id: str,
    year: Optional[int] = None,
    repo: PropertyRepository = Depends(get_repository),
):
    """Net cash flow for one year, or for the whole ledger without ``year``."""
    ledger, _ = repo.snapshot(property_id)
    return CashFlowResponse(
        property_id=property_id,
        year=year,
        years=ledger_years(ledger),
        net_cash_flow=net_cash_flow_total(ledger, year),
    )
