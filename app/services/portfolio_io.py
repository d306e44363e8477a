"""
Portfolio document import/export.

Reads and writes the persisted portfolio document::

    {"objects": [{...property..., "tenants": [...], "months": {...}}],
     "settings": {"locale": "ru", "currency": "RUB", "summaryCurrency": "RUB"}}

Unknown top-level keys (calendar events, asset maps, ...) are ignored.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from app.calculations.ledger import denormalize_ledger, normalize_ledger
from app.db.models import Property, PropertyCondition, PropertyStatus, PropertyType
from app.services.repository import PropertyRepository

logger = logging.getLogger(__name__)


class PortfolioFormatError(ValueError):
    """Raised when a portfolio document cannot be read."""


# Legacy spellings found in older documents, lowercased
PROPERTY_TYPE_ALIASES = {
    "производство": PropertyType.industrial,
    "промышленная": PropertyType.industrial,
    "складская": PropertyType.industrial,
    "жилая": PropertyType.residential,
    "жилое": PropertyType.residential,
    "коммерческая": PropertyType.commercial,
    "коммерческое": PropertyType.commercial,
    "земельный участок": PropertyType.land,
    "участок": PropertyType.land,
    "земля": PropertyType.land,
}

PROPERTY_STATUS_ALIASES = {
    "сдано": PropertyStatus.rented,
    "сдано в аренду": PropertyStatus.rented,
    "свободно": PropertyStatus.vacant,
    "свободное": PropertyStatus.vacant,
    "на ремонте": PropertyStatus.under_repair,
    "ремонт": PropertyStatus.under_repair,
    "рабочее": PropertyStatus.under_repair,
    "продано": PropertyStatus.sold,
}

PROPERTY_CONDITION_ALIASES = {
    "отличное": PropertyCondition.excellent,
    "отлично": PropertyCondition.excellent,
    "хорошее": PropertyCondition.good,
    "хорошо": PropertyCondition.good,
    "удовлетворительное": PropertyCondition.satisfactory,
    "удовлетворительно": PropertyCondition.satisfactory,
    "требует ремонта": PropertyCondition.needs_repair,
    "ремонт": PropertyCondition.needs_repair,
}


def _enum_value(raw, enum_cls, aliases: Dict, default):
    """Canonical enum value for a stored spelling, falling back to ``default``."""
    if raw is None:
        return default.value if default is not None else None
    text = str(raw).strip().lower()
    for member in enum_cls:
        if text == member.value:
            return member.value
    if text in aliases:
        return aliases[text].value
    logger.debug(f"Unknown {enum_cls.__name__} {raw!r}, using {default}")
    return default.value if default is not None else None


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value) -> Optional[float]:
    """Numbers and numeric strings pass; empty or non-numeric strings become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def decode_tenant(data: Dict) -> Dict:
    """Column values for a tenant entry."""
    if not isinstance(data, dict):
        raise PortfolioFormatError("Tenant entries must be JSON objects")
    name = _optional_str(data.get("name"))
    if name is None:
        raise PortfolioFormatError("Tenant entry without a name")
    return {
        "name": name,
        "income": _optional_float(data.get("income")),
        "start_date": _optional_str(data.get("startDate")),
        "end_date": _optional_str(data.get("endDate")),
        "area": _optional_float(data.get("area")),
        "indexation": _optional_str(data.get("indexation")),
    }


def decode_property(data: Dict) -> Tuple[Dict, List[Dict]]:
    """Column values and tenant entries for one document object."""
    if not isinstance(data, dict):
        raise PortfolioFormatError("Portfolio objects must be JSON objects")
    name = _optional_str(data.get("name"))
    if name is None:
        raise PortfolioFormatError("Property entry without a name")

    raw_months = data.get("months") or {}
    if not isinstance(raw_months, dict):
        raise PortfolioFormatError(f"Ledger of {name!r} must be a JSON object")
    # Round-trip through the normalized form to drop malformed ledger entries
    months = denormalize_ledger(normalize_ledger(raw_months))

    columns = {
        "id": _optional_str(data.get("id")),
        "name": name,
        "property_type": _enum_value(
            data.get("type"), PropertyType, PROPERTY_TYPE_ALIASES, PropertyType.commercial
        ),
        "status": _enum_value(
            data.get("status"), PropertyStatus, PROPERTY_STATUS_ALIASES, PropertyStatus.vacant
        ),
        "condition": _enum_value(
            data.get("condition"), PropertyCondition, PROPERTY_CONDITION_ALIASES, None
        ),
        "address": data.get("address") or "",
        "source": _optional_str(data.get("source")),
        "icon": _optional_str(data.get("icon")),
        "area": _optional_float(data.get("area")) or 0.0,
        "purchase_price": _optional_float(data.get("purchasePrice")) or 0.0,
        "purchase_date": _optional_str(data.get("purchaseDate")) or "",
        "property_tax": _optional_float(data.get("propertyTax")),
        "insurance_cost": _optional_float(data.get("insuranceCost")),
        "exit_price": _optional_float(data.get("exitPrice")),
        "months": months,
    }
    raw_tenants = data.get("tenants") or []
    if not isinstance(raw_tenants, list):
        raise PortfolioFormatError(f"Tenants of {name!r} must be a JSON list")
    tenants = [decode_tenant(t) for t in raw_tenants]
    return columns, tenants


def encode_property(prop: Property) -> Dict[str, Any]:
    """Document object for a stored property."""
    return {
        "id": prop.id,
        "name": prop.name,
        "type": prop.property_type,
        "address": prop.address or "",
        "area": prop.area or 0.0,
        "purchasePrice": prop.purchase_price or 0.0,
        "purchaseDate": prop.purchase_date or "",
        "status": prop.status,
        "source": prop.source,
        "condition": prop.condition,
        "icon": prop.icon,
        "propertyTax": prop.property_tax,
        "insuranceCost": prop.insurance_cost,
        "exitPrice": prop.exit_price,
        "tenants": [
            {
                "name": t.name,
                "income": t.income,
                "startDate": t.start_date,
                "endDate": t.end_date,
                "area": t.area,
                "indexation": t.indexation,
            }
            for t in prop.tenants
        ],
        "months": prop.months or {},
    }


def import_portfolio(
    repo: PropertyRepository, document: Dict, replace: bool = False
) -> List[Property]:
    """
    Load a portfolio document into the repository.

    Args:
        repo: Target repository
        document: Parsed portfolio document
        replace: Delete existing properties first

    Returns:
        The stored properties, in document order

    Raises:
        PortfolioFormatError: If the document or one of its objects is malformed
    """
    if not isinstance(document, dict) or not isinstance(document.get("objects"), list):
        raise PortfolioFormatError("Portfolio document must contain an 'objects' list")

    # Decode everything before touching the store
    decoded = [decode_property(obj) for obj in document["objects"]]

    if replace:
        removed = repo.delete_all()
        logger.info(f"Removed {removed} existing properties before import")

    stored = [repo.add(columns, tenants) for columns, tenants in decoded]
    logger.info(f"Imported {len(stored)} properties")
    return stored


def export_portfolio(
    repo: PropertyRepository, currency: str = "RUB", locale: str = "ru"
) -> Dict[str, Any]:
    """Portfolio document for every stored property."""
    return {
        "objects": [encode_property(p) for p in repo.list()],
        "settings": {"locale": locale, "currency": currency, "summaryCurrency": currency},
    }


def load_portfolio_file(path: str) -> Dict:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise PortfolioFormatError(f"Invalid JSON in {path}: {e}") from e


def save_portfolio_file(path: str, document: Dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, ensure_ascii=False, indent=2, sort_keys=True)
