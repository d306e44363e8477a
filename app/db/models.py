"""
SQLAlchemy ORM models for the property portfolio.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    DateTime,
    ForeignKey,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
import enum


class PropertyType(str, enum.Enum):
    """Property type enumeration."""
    residential = "residential"
    commercial = "commercial"
    industrial = "industrial"
    land = "land"


class PropertyStatus(str, enum.Enum):
    """Occupancy status enumeration."""
    rented = "rented"
    vacant = "vacant"
    under_repair = "under_repair"
    sold = "sold"


class PropertyCondition(str, enum.Enum):
    """Physical condition enumeration."""
    excellent = "excellent"
    good = "good"
    satisfactory = "satisfactory"
    needs_repair = "needs_repair"


Base = declarative_base()


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Property(AuditMixin, Base):
    """A real estate object with its monthly ledger."""

    __tablename__ = "properties"

    # Zero-padded sequence: "001", "002", ...
    id = Column(String(20), primary_key=True)
    name = Column(String(255), nullable=False)

    property_type = Column(String(50), default=PropertyType.commercial.value)
    status = Column(String(50), default=PropertyStatus.vacant.value)
    condition = Column(String(50), nullable=True)
    address = Column(String(500), default="")
    source = Column(String(255), nullable=True)
    icon = Column(String(100), nullable=True)

    area = Column(Float, default=0)

    # Purchase info; date kept in its stored text format ("dd.mm.yyyy")
    purchase_price = Column(Float, default=0)
    purchase_date = Column(String(20), default="")

    # Annual fixed costs and projected sale price
    property_tax = Column(Float, nullable=True)
    insurance_cost = Column(Float, nullable=True)
    exit_price = Column(Float, nullable=True)

    # {"yyyy": {"mm": {"income": ..., "expenses_other": ...}}}
    months = Column(JSON, default=dict)

    # Relationships
    tenants = relationship(
        "Tenant",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="Tenant.position",
    )


class Tenant(AuditMixin, Base):
    """Tenant renting (part of) a property."""

    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(String(20), ForeignKey("properties.id"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)

    name = Column(String(255), nullable=False)
    income = Column(Float, nullable=True)  # monthly
    start_date = Column(String(20), nullable=True)
    end_date = Column(String(20), nullable=True)
    area = Column(Float, nullable=True)
    indexation = Column(Text, nullable=True)  # free text, e.g. "5%"

    # Relationships
    property = relationship("Property", back_populates="tenants")
