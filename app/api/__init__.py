"""
API routes for the portfolio service.
"""

from fastapi import APIRouter

from app.api import calculations, portfolio, properties

router = APIRouter()

# Include sub-routers
router.include_router(properties.router, prefix="/properties", tags=["properties"])
router.include_router(portfolio.router, prefix="/portfolio", tags=["portfolio"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
