"""
Application services module.
"""

from app.services.repository import PropertyNotFoundError, PropertyRepository

__all__ = ["PropertyNotFoundError", "PropertyRepository"]
