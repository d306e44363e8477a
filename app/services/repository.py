"""
Property repository.

The single authoritative store of properties. The application creates one
per request session and passes it where needed; the calculation engine never
sees it and only receives plain snapshots from ``snapshot()``.
"""

import copy
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.calculations.ledger import MonthRecord
from app.calculations.metrics import PropertyAttributes, Tenant as TenantSnapshot
from app.db.models import Property, Tenant

logger = logging.getLogger(__name__)

ID_WIDTH = 3


class PropertyNotFoundError(LookupError):
    """Raised when a property id is unknown."""

    def __init__(self, property_id: str):
        super().__init__(f"Property {property_id!r} not found")
        self.property_id = property_id


def format_id(number: int) -> str:
    return f"{number:0{ID_WIDTH}d}"


def property_attributes(prop: Property) -> PropertyAttributes:
    """Plain attribute snapshot of a stored property."""
    return PropertyAttributes(
        area=prop.area or 0.0,
        purchase_price=prop.purchase_price or 0.0,
        purchase_date=prop.purchase_date or "",
        exit_price=prop.exit_price,
        property_tax=prop.property_tax,
        insurance_cost=prop.insurance_cost,
        tenants=[
            TenantSnapshot(
                name=t.name,
                income=t.income,
                start_date=t.start_date,
                end_date=t.end_date,
                area=t.area,
                indexation=t.indexation,
            )
            for t in prop.tenants
        ],
    )


class PropertyRepository:
    """CRUD access to properties, their ledgers and tenants."""

    def __init__(self, db: Session):
        self.db = db

    # === Queries ===

    def list(self) -> List[Property]:
        return self.db.query(Property).order_by(Property.id).all()

    def get(self, property_id: str) -> Property:
        prop = self.db.get(Property, property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)
        return prop

    def next_id(self) -> str:
        """Next zero-padded id after the highest numeric id; non-numeric ids are ignored."""
        numeric = [int(pid) for (pid,) in self.db.query(Property.id) if pid.isdigit()]
        return format_id(max(numeric, default=0) + 1)

    def snapshot(self, property_id: str) -> Tuple[Dict, PropertyAttributes]:
        """(ledger, attributes) copies for the calculation engine."""
        prop = self.get(property_id)
        return copy.deepcopy(prop.months or {}), property_attributes(prop)

    def snapshots(self) -> List[Tuple[Dict, PropertyAttributes]]:
        return [(copy.deepcopy(p.months or {}), property_attributes(p)) for p in self.list()]

    # === Properties ===

    def add(self, data: Dict, tenants: Optional[List[Dict]] = None) -> Property:
        """
        Store a new property.

        An id that is missing or not numeric is replaced by ``next_id()``.
        """
        data = dict(data)
        property_id = str(data.pop("id", "") or "")
        if not property_id.isdigit() or self.db.get(Property, property_id) is not None:
            property_id = self.next_id()

        prop = Property(id=property_id, **data)
        prop.months = copy.deepcopy(data.get("months") or {})
        for position, tenant in enumerate(tenants or []):
            prop.tenants.append(Tenant(position=position, **tenant))

        self.db.add(prop)
        self.db.commit()
        self.db.refresh(prop)
        logger.info(f"Added property {prop.id} ({prop.name})")
        return prop

    def update(self, property_id: str, changes: Dict) -> Property:
        prop = self.get(property_id)
        for field, value in changes.items():
            if field == "months":
                value = copy.deepcopy(value or {})
            setattr(prop, field, value)
        self.db.commit()
        self.db.refresh(prop)
        logger.info(f"Updated property {prop.id}")
        return prop

    def delete(self, property_id: str) -> None:
        prop = self.get(property_id)
        self.db.delete(prop)
        self.db.commit()
        logger.info(f"Deleted property {property_id}")

    def delete_all(self) -> int:
        count = 0
        for prop in self.list():
            self.db.delete(prop)
            count += 1
        self.db.commit()
        return count

    # === Ledger ===

    def set_month(self, property_id: str, year: int, month: int, record: MonthRecord) -> Property:
        """Create or replace one month of the ledger."""
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        prop = self.get(property_id)
        months = copy.deepcopy(prop.months or {})
        months.setdefault(str(year), {})[f"{month:02d}"] = record.to_dict()
        # JSON columns only persist on reassignment
        prop.months = months
        self.db.commit()
        self.db.refresh(prop)
        return prop

    def delete_year(self, property_id: str, year: int) -> bool:
        """Remove a whole year from the ledger. Returns False if it was absent."""
        prop = self.get(property_id)
        months = copy.deepcopy(prop.months or {})
        if months.pop(str(year), None) is None:
            return False
        prop.months = months
        self.db.commit()
        logger.info(f"Deleted year {year} from property {property_id}")
        return True

    # === Tenants ===

    def add_tenant(self, property_id: str, data: Dict) -> Tenant:
        prop = self.get(property_id)
        position = max((t.position for t in prop.tenants), default=-1) + 1
        tenant = Tenant(position=position, **data)
        prop.tenants.append(tenant)
        self.db.commit()
        self.db.refresh(tenant)
        return tenant

    def remove_tenant(self, property_id: str, index: int) -> str:
        """Remove the tenant at ``index`` in display order and return its name."""
        prop = self.get(property_id)
        if not 0 <= index < len(prop.tenants):
            raise IndexError(f"Tenant index {index} out of range")
        name = prop.tenants.pop(index).name
        self.db.commit()
        return name
