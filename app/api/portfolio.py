"""
Portfolio-level API endpoints: summary statistics and document import/export.
"""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, List

from app.api.dependencies import get_repository
from app.calculations.portfolio import summarize_portfolio
from app.config import get_settings
from app.services.portfolio_io import export_portfolio, import_portfolio
from app.services.repository import PropertyRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class PortfolioSummaryResponse(BaseModel):
    """Totals and averages across all properties."""

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


class ImportResponse(BaseModel):
    imported: int
    ids: List[str]


@router.get("/summary", response_model=PortfolioSummaryResponse)
async def portfolio_summary(repo: PropertyRepository = Depends(get_repository)):
    """Portfolio statistics over the full ledger of every property."""
    summary = summarize_portfolio(repo.snapshots())
    return PortfolioSummaryResponse(**summary.to_dict())


@router.post("/import", response_model=ImportResponse)
async def import_document(
    document: Dict[str, Any] = Body(...),
    replace: bool = False,
    repo: PropertyRepository = Depends(get_repository),
):
    """Import a portfolio document ({"objects": [...], "settings": {...}})."""
    try:
        stored = import_portfolio(repo, document, replace=replace)
    except ValueError as e:
        logger.warning(f"Rejected portfolio import: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return ImportResponse(imported=len(stored), ids=[p.id for p in stored])


@router.get("/export")
async def export_document(repo: PropertyRepository = Depends(get_repository)):
    """Export every property as a portfolio document."""
    settings = get_settings()
    return export_portfolio(
        repo, currency=settings.default_currency, locale=settings.default_locale
    )
