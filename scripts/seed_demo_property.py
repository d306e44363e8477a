"""
Seed the database with a demo property: twelve months of ledger data for
the current year and one tenant.
"""
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.calculations.ledger import MonthRecord
from app.db.database import SessionLocal, init_db
from app.db.models import Property, PropertyStatus, PropertyType
from app.services.repository import PropertyRepository

DEMO_NAME = "Demo Office"


def demo_ledger(year: int) -> dict:
    """A year of ledger data with a seasonal dip in summer."""
    months = {}
    for month in range(1, 13):
        income = 60000 if month not in (7, 8) else 45000
        record = MonthRecord(
            base_income=income,
            expense_admin=6000,
            expense_maintenance=12000,
            expense_utilities=9000,
            expense_operational=7000,
            expense_other=3000,
        )
        months[f"{month:02d}"] = record.to_dict()
    return {str(year): months}


def main():
    init_db()
    db = SessionLocal()

    try:
        existing = db.query(Property).filter(Property.name == DEMO_NAME).first()
        if existing:
            print(f"Property '{DEMO_NAME}' already exists (ID: {existing.id})")
            return

        today = date.today()
        repo = PropertyRepository(db)
        prop = repo.add(
            {
                "name": DEMO_NAME,
                "property_type": PropertyType.commercial.value,
                "status": PropertyStatus.rented.value,
                "address": "10 Market Street, office 301",
                "area": 120.0,
                "purchase_price": 25000000,
                "purchase_date": date(today.year - 2, today.month, 1).strftime("%d.%m.%Y"),
                "property_tax": 30000,
                "insurance_cost": 25000,
                "exit_price": 27000000,
                "months": demo_ledger(today.year),
            },
            tenants=[
                {
                    "name": "Acme LLC",
                    "income": 60000,
                    "start_date": f"01.01.{today.year}",
                    "end_date": f"31.12.{today.year + 2}",
                    "area": 120.0,
                    "indexation": "3%",
                }
            ],
        )
        print(f"Created property: {prop.name} (ID: {prop.id})")
        print(f"\nAnalytics: GET /api/properties/{prop.id}/analytics")

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
