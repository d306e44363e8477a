#!/usr/bin/env python3
"""
Import a portfolio document (data.json) into the database, or export it back.

Usage:
    python scripts/import_portfolio.py data.json [--replace]
    python scripts/import_portfolio.py --export out.json
"""

import argparse
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import get_settings
from app.db.database import get_db_context, init_db
from app.services.portfolio_io import (
    PortfolioFormatError,
    export_portfolio,
    import_portfolio,
    load_portfolio_file,
    save_portfolio_file,
)
from app.services.repository import PropertyRepository


def main():
    parser = argparse.ArgumentParser(description="Import or export a portfolio document")
    parser.add_argument("path", help="Portfolio JSON file")
    parser.add_argument("--replace", action="store_true", help="Delete existing properties first")
    parser.add_argument("--export", action="store_true", help="Write the database to PATH instead")
    args = parser.parse_args()

    init_db()

    if args.export:
        settings = get_settings()
        with get_db_context() as db:
            document = export_portfolio(
                PropertyRepository(db),
                currency=settings.default_currency,
                locale=settings.default_locale,
            )
        save_portfolio_file(args.path, document)
        print(f"Exported {len(document['objects'])} properties to {args.path}")
        return

    try:
        document = load_portfolio_file(args.path)
        with get_db_context() as db:
            stored = import_portfolio(PropertyRepository(db), document, replace=args.replace)
            for prop in stored:
                print(f"  {prop.id}  {prop.name}")
            print(f"\nImported {len(stored)} properties from {args.path}")
    except PortfolioFormatError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
