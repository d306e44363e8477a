"""
Shared FastAPI dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.services.repository import PropertyRepository


def get_repository(db: Session = Depends(get_db)) -> PropertyRepository:
    """Repository bound to the request's database session."""
    return PropertyRepository(db)
