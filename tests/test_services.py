"""
Tests for the property repository and portfolio document import/export.
"""

import pytest

from app.calculations.ledger import MonthRecord
from app.services.portfolio_io import (
    PortfolioFormatError,
    decode_property,
    decode_tenant,
    export_portfolio,
    import_portfolio,
    load_portfolio_file,
    save_portfolio_file,
)
from app.services.repository import PropertyNotFoundError


# ============================================================================
# REPOSITORY TESTS
# ============================================================================

class TestPropertyRepository:
    """Test CRUD and ledger editing on the repository."""

    def test_ids_are_sequential(self, repo):
        """Test that ids are assigned in sequence."""
        first = repo.add({"name": "A"})
        second = repo.add({"name": "B"})
        assert (first.id, second.id) == ("001", "002")

    def test_non_numeric_id_is_replaced(self, repo):
        """Test that legacy non-numeric ids get a new id."""
        legacy = repo.add({"id": "7d3c7f0e-uuid", "name": "Legacy"})
        kept = repo.add({"id": "002", "name": "Kept"})
        fresh = repo.add({"name": "Fresh"})

        assert legacy.id == "001"
        assert kept.id == "002"
        assert fresh.id == "003"

    def test_duplicate_id_is_replaced(self, repo):
        """Test that a taken id gets a new id."""
        repo.add({"id": "005", "name": "A"})
        duplicate = repo.add({"id": "005", "name": "B"})
        assert duplicate.id == "006"

    def test_get_unknown(self, repo):
        """Test getting a property that doesn't exist."""
        with pytest.raises(PropertyNotFoundError) as exc:
            repo.get("042")
        assert exc.value.property_id == "042"

    def test_update(self, repo):
        """Test updating some fields of a property."""
        prop = repo.add({"name": "Old", "area": 10})
        updated = repo.update(prop.id, {"name": "New"})
        assert updated.name == "New"
        assert updated.area == 10

    def test_delete(self, repo):
        """Test deleting a property with its tenants."""
        prop = repo.add({"name": "Gone"}, tenants=[{"name": "T"}])
        repo.delete(prop.id)
        assert repo.list() == []

    def test_set_month_persists(self, repo, db_session):
        """Test that month edits are saved."""
        prop = repo.add({"name": "Ledger"})
        repo.set_month(prop.id, 2024, 3, MonthRecord(base_income=1000.0))
        repo.set_month(prop.id, 2024, 4, MonthRecord(expense_other=20.0))

        db_session.expire_all()
        months = repo.get(prop.id).months
        assert months == {"2024": {"03": {"income": 1000.0}, "04": {"expenses_other": 20.0}}}

    def test_set_month_out_of_range(self, repo):
        """Test that an invalid month is rejected."""
        prop = repo.add({"name": "Ledger"})
        with pytest.raises(ValueError):
            repo.set_month(prop.id, 2024, 0, MonthRecord())

    def test_delete_year(self, repo, sample_ledger):
        """Test removing a year from the ledger."""
        prop = repo.add({"name": "Ledger", "months": sample_ledger})
        assert repo.delete_year(prop.id, 2023) is True
        assert repo.delete_year(prop.id, 2023) is False
        assert list(repo.get(prop.id).months) == ["2024"]

    def test_tenants_keep_order(self, repo):
        """Test tenant order after adding and removing."""
        prop = repo.add({"name": "Tenants"}, tenants=[{"name": "A"}, {"name": "B"}])
        repo.add_tenant(prop.id, {"name": "C", "income": 100.0})

        assert repo.remove_tenant(prop.id, 1) == "B"
        assert [t.name for t in repo.get(prop.id).tenants] == ["A", "C"]

        with pytest.raises(IndexError):
            repo.remove_tenant(prop.id, 2)

    def test_snapshot_is_a_copy(self, repo):
        """Test that snapshots don't share state with the store."""
        prop = repo.add(
            {"name": "Snap", "area": 40, "purchase_price": 500000},
            tenants=[{"name": "A", "income": 10.0}],
        )
        repo.set_month(prop.id, 2024, 1, MonthRecord(base_income=1.0))

        ledger, attrs = repo.snapshot(prop.id)
        ledger["2024"]["01"]["income"] = 999

        assert repo.get(prop.id).months["2024"]["01"]["income"] == 1.0
        assert attrs.area == 40
        assert attrs.purchase_price == 500000
        assert attrs.tenants[0].name == "A"


# ============================================================================
# PORTFOLIO DOCUMENT TESTS
# ============================================================================

LEGACY_DOCUMENT = {
    "objects": [
        {
            "id": "3f1b-uuid",
            "name": "Склад",
            "type": "Складская",
            "status": "Свободно",
            "condition": "Хорошее",
            "address": "Industrial 5",
            "area": "1200",
            "purchasePrice": 45000000,
            "purchaseDate": "2021-06-01",
            "propertyTax": 150000,
            "tenants": [],
            "months": {
                "2023": {"1": {"income": 300000}, "13": {"income": 1}},
                "abc": {"01": {"income": 1}},
            },
        },
        {
            "id": "002",
            "name": "Office",
            "type": "commercial",
            "status": "rented",
            "tenants": [
                {"name": "LLC Alpha", "income": 90000, "startDate": "01.01.2023", "endDate": "31.12.2025"},
            ],
        },
    ],
    "settings": {"locale": "ru", "currency": "RUB"},
    "calendarEvents": [{"title": "ignored"}],
}


class TestPortfolioDocument:
    """Test decoding, import and export of portfolio documents."""

    def test_decode_tenant_blank_fields(self):
        """Test that blank tenant fields become None."""
        tenant = decode_tenant({"name": " Ivanov ", "income": "75000", "area": "", "startDate": ""})
        assert tenant == {
            "name": "Ivanov",
            "income": 75000.0,
            "start_date": None,
            "end_date": None,
            "area": None,
            "indexation": None,
        }

    def test_decode_tenant_requires_name(self):
        """Test that a tenant needs a name."""
        with pytest.raises(PortfolioFormatError):
            decode_tenant({"income": 10})

    def test_decode_legacy_property(self):
        """Test decoding legacy spellings and a messy ledger."""
        columns, tenants = decode_property(LEGACY_DOCUMENT["objects"][0])
        assert columns["property_type"] == "industrial"
        assert columns["status"] == "vacant"
        assert columns["condition"] == "good"
        assert columns["area"] == 1200.0
        assert columns["purchase_price"] == 45000000.0
        assert columns["property_tax"] == 150000.0
        # Malformed keys dropped, months zero-padded
        assert columns["months"] == {"2023": {"01": {"income": 300000.0}}}
        assert tenants == []

    def test_decode_defaults(self):
        """Test defaults for unknown enum values."""
        columns, _ = decode_property({"name": "Bare", "type": "unknown"})
        assert columns["property_type"] == "commercial"
        assert columns["status"] == "vacant"
        assert columns["condition"] is None
        assert columns["months"] == {}

    def test_decode_drops_non_record_months(self):
        """Test that month values which are not objects are skipped."""
        columns, _ = decode_property(
            {"name": "X", "months": {"2023": {"01": 5, "02": {"income": 10}}, "2024": [1]}}
        )
        assert columns["months"] == {"2023": {"02": {"income": 10.0}}}

    def test_decode_rejects_wrong_container_types(self):
        """Test that a non-object ledger or a non-list tenant field is a format error."""
        with pytest.raises(PortfolioFormatError):
            decode_property({"name": "X", "months": [1, 2]})
        with pytest.raises(PortfolioFormatError):
            decode_property({"name": "X", "tenants": {"name": "A"}})
        with pytest.raises(PortfolioFormatError):
            decode_tenant("A")

    def test_import(self, repo):
        """Test importing a portfolio document."""
        stored = import_portfolio(repo, LEGACY_DOCUMENT)
        assert [p.id for p in stored] == ["001", "002"]
        assert stored[1].tenants[0].end_date == "31.12.2025"

    def test_import_replace(self, repo):
        """Test replacing existing properties on import."""
        repo.add({"name": "Existing"})
        import_portfolio(repo, LEGACY_DOCUMENT, replace=True)
        assert [p.name for p in repo.list()] == ["Склад", "Office"]

    def test_invalid_document_leaves_store_untouched(self, repo):
        """Test that a failed import changes nothing."""
        repo.add({"name": "Existing"})
        document = {"objects": [{"name": "Fine"}, {"type": "commercial"}]}

        with pytest.raises(PortfolioFormatError):
            import_portfolio(repo, document, replace=True)
        assert [p.name for p in repo.list()] == ["Existing"]

    def test_missing_objects(self, repo):
        """Test a document without an objects list."""
        with pytest.raises(PortfolioFormatError):
            import_portfolio(repo, {"settings": {}})

    def test_export(self, repo):
        """Test exporting the stored portfolio."""
        import_portfolio(repo, LEGACY_DOCUMENT)
        document = export_portfolio(repo, currency="USD", locale="en")

        assert document["settings"] == {"locale": "en", "currency": "USD", "summaryCurrency": "USD"}
        warehouse, office = document["objects"]
        assert warehouse["type"] == "industrial"
        assert warehouse["purchaseDate"] == "2021-06-01"
        assert office["tenants"][0]["startDate"] == "01.01.2023"

    def test_file_round_trip(self, repo, tmp_path):
        """Test saving and loading a portfolio file."""
        import_portfolio(repo, LEGACY_DOCUMENT)
        path = tmp_path / "portfolio.json"
        save_portfolio_file(str(path), export_portfolio(repo))

        loaded = load_portfolio_file(str(path))
        assert [obj["name"] for obj in loaded["objects"]] == ["Склад", "Office"]

    def test_load_invalid_json(self, tmp_path):
        """Test loading a file that isn't JSON."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PortfolioFormatError):
            load_portfolio_file(str(path))
