"""
Inventory Import Service

Imports tabular inventory rows (the column layout of the shared inventory
sheets) into the catalog and the stock ledger:

- products:          name, unit, cost_per_unit, low_stock_threshold
- purchases:         product_name, quantity, purchase_date, vendor, invoice_number, created_by
- service mappings:  service_name, product_name, quantity_required
- default products:  product_name, quantity

Imports run repeatedly against the same data, so every write goes through
an upsert or the ledger's purchase dedup. A bad row is logged and skipped;
it never stops the rest of the import.
"""
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.employee import Employee
from app.services import stock_ledger_service

logger = get_logger("inventory_import")

# Integer primary keys; longer digit strings are mobile numbers
MAX_EMPLOYEE_ID = 2**31 - 1


@dataclass
class ImportReport:
    kind: str
    processed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


def _cell(row: Sequence[str], index: int, default: str = "") -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return default


def parse_quantity(value: Optional[str]) -> Decimal:
    """Decimal quantity, or 0 for blanks and garbage."""
    try:
        parsed = Decimal((value or "").strip().replace(",", ""))
    except InvalidOperation:
        return Decimal("0")
    if not parsed.is_finite():
        return Decimal("0")
    return parsed


def parse_purchase_date(value: Optional[str]) -> date:
    """
    Accepts ISO dates (2026-03-01) and day-first dates (01/03/2026, 1-3-26).
    Blank or unparseable values fall back to today.
    """
    text = (value or "").strip()
    if not text:
        return utcnow().date()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    parts = [p.strip() for p in re.split(r"[/\-]", text)]
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        day, month, year = parts
        if len(year) == 2:
            year = f"20{year}"
        try:
            return date(int(year), int(month), int(day))
        except ValueError:
            pass
    logger.warning(f"Unparseable purchase date '{text}', using today")
    return utcnow().date()


def resolve_created_by(db: Session, raw: Optional[str]) -> Optional[int]:
    """Employee id for a sheet's created_by cell: an existing id, username, email, mobile or name."""
    value = (raw or "").strip()
    if not value:
        return None
    if value.isdigit() and int(value) <= MAX_EMPLOYEE_ID and db.get(Employee, int(value)) is not None:
        return int(value)
    lowered = value.lower()
    employee = db.query(Employee).filter(
        (Employee.username == value) | (Employee.email == lowered) | (Employee.mobile == value)
    ).first()
    if employee is None:
        employee = db.query(Employee).filter(Employee.name == value).first()
    if employee is None:
        logger.warning(f"Unknown created_by '{value}' in import; left empty")
    return employee.id if employee else None


def _run_row(db: Session, report: ImportReport, row_number: int, apply) -> None:
    try:
        with db.begin_nested():
            applied = apply()
    except (SQLAlchemyError, ValueError, InvalidOperation) as e:
        report.skipped += 1
        report.errors.append(f"row {row_number}: {e}")
        logger.error(f"[{report.kind} import] row {row_number} failed: {e}")
        return
    if applied:
        report.processed += 1
    else:
        report.skipped += 1


def import_products(db: Session, rows: Sequence[Sequence[str]]) -> ImportReport:
    report = ImportReport(kind="products")
    for number, row in enumerate(rows, start=1):
        name, unit, cost = _cell(row, 0), _cell(row, 1), _cell(row, 2)
        threshold = _cell(row, 3, "0") or "0"
        if not name or not unit or not cost:
            report.skipped += 1
            continue

        def apply(name=name, unit=unit, cost=cost, threshold=threshold):
            stock_ledger_service.upsert_product_by_name(
                db, name=name, unit=unit, cost_per_unit=parse_quantity(cost),
                low_stock_threshold=parse_quantity(threshold),
            )
            return True

        _run_row(db, report, number, apply)
    db.commit()
    logger.info(f"[products import] complete ({report.processed} upserts, {report.skipped} skipped)")
    return report


def import_purchases(db: Session, rows: Sequence[Sequence[str]]) -> ImportReport:
    report = ImportReport(kind="purchases")
    for number, row in enumerate(rows, start=1):
        product_name = _cell(row, 0)
        quantity = parse_quantity(_cell(row, 1))
        if not product_name or quantity <= 0:
            report.skipped += 1
            continue

        def apply(row=row, product_name=product_name, quantity=quantity):
            product = stock_ledger_service.get_product_by_name(db, product_name)
            if product is None:
                logger.warning(f"[purchases import] product not found: {product_name}")
                return False
            _, created = stock_ledger_service.record_purchase(db, stock_ledger_service.PurchaseInput(
                product_id=product.id,
                quantity=quantity,
                purchase_date=parse_purchase_date(_cell(row, 2)),
                vendor_name=_cell(row, 3) or None,
                invoice_number=_cell(row, 4) or None,
                created_by=resolve_created_by(db, _cell(row, 5)),
            ))
            return created

        _run_row(db, report, number, apply)
    db.commit()
    logger.info(f"[purchases import] complete ({report.processed} inserted, {report.skipped} skipped)")
    return report


def import_service_mappings(db: Session, rows: Sequence[Sequence[str]]) -> ImportReport:
    report = ImportReport(kind="service_mappings")
    for number, row in enumerate(rows, start=1):
        service_name = _cell(row, 0).lower()
        product_name = _cell(row, 1)
        quantity = parse_quantity(_cell(row, 2))
        if not service_name or not product_name or quantity <= 0:
            report.skipped += 1
            continue

        def apply(service_name=service_name, product_name=product_name, quantity=quantity):
            product = stock_ledger_service.get_product_by_name(db, product_name)
            if product is None:
                logger.warning(f"[mappings import] product not found: {product_name}")
                return False
            stock_ledger_service.upsert_service_product_mapping(db, service_name, product.id, quantity)
            return True

        _run_row(db, report, number, apply)
    db.commit()
    logger.info(f"[mappings import] complete ({report.processed} upserts, {report.skipped} skipped)")
    return report


def import_default_products(db: Session, rows: Sequence[Sequence[str]]) -> ImportReport:
    report = ImportReport(kind="default_products")
    for number, row in enumerate(rows, start=1):
        product_name = _cell(row, 0)
        quantity = parse_quantity(_cell(row, 1))
        if not product_name or quantity <= 0:
            report.skipped += 1
            continue

        def apply(product_name=product_name, quantity=quantity):
            product = stock_ledger_service.get_product_by_name(db, product_name)
            if product is None:
                logger.warning(f"[defaults import] product not found: {product_name}")
                return False
            stock_ledger_service.upsert_order_default_product(db, product.id, quantity)
            return True

        _run_row(db, report, number, apply)
    db.commit()
    logger.info(f"[defaults import] complete ({report.processed} upserts, {report.skipped} skipped)")
    return report


IMPORTERS = {
    "products": import_products,
    "purchases": import_purchases,
    "service_mappings": import_service_mappings,
    "default_products": import_default_products,
}
