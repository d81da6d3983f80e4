#!/usr/bin/env python3
"""
Import inventory sheets exported as CSV into the catalog and stock ledger.

Usage (from backend dir):
  python scripts/import_inventory.py products products.csv
  python scripts/import_inventory.py purchases purchases.csv --skip-header

Re-running an import is safe: products, mappings and defaults are upserted
and duplicate purchases are ignored.
"""
import argparse
import csv
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.db_transaction import db_transaction
from app.services.inventory_import_service import IMPORTERS


def read_rows(path, skip_header):
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]
    return rows[1:] if skip_header else rows


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import inventory CSV data")
    parser.add_argument("kind", choices=sorted(IMPORTERS))
    parser.add_argument("csv_path")
    parser.add_argument("--skip-header", action="store_true", help="Ignore the first row")
    args = parser.parse_args(argv)

    rows = read_rows(args.csv_path, args.skip_header)
    with db_transaction() as db:
        report = IMPORTERS[args.kind](db, rows)

    print(f"{report.kind}: {report.processed} processed, {report.skipped} skipped")
    for error in report.errors:
        print(f"  {error}", file=sys.stderr)
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
