"""
Stock ledger for FieldGlow.

Purchases (credits) and consumptions (debits) are append-only. Current stock
is always SUM(purchases) - SUM(consumptions), computed live; there is no
mutable stock counter, so concurrent writers never lose an update.
Stock may go negative; the stock summary surfaces that, writes never block.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.core.db_transaction import insert_ignore_conflicts
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.inventory import (
    Product,
    ProductPurchase,
    ProductConsumption,
    ServiceProductMapping,
    OrderDefaultProduct,
)
from app.services.product_resolver import QUANTITY_PLACES, normalize_service_name, to_quantity

logger = get_logger("stock_ledger")


@dataclass
class PurchaseInput:
    product_id: int
    quantity: Decimal
    purchase_date: Optional[date] = None
    vendor_name: Optional[str] = None
    invoice_number: Optional[str] = None
    created_by: Optional[int] = None


@dataclass
class ConsumptionRow:
    order_id: int
    beautician_id: int
    product_id: int
    quantity_used: Decimal
    external_order_id: Optional[str] = None
    auto_generated: bool = True


def _sum_or_zero(value) -> Decimal:
    if value is None:
        return Decimal("0").quantize(QUANTITY_PLACES)
    return to_quantity(value)


def _null_safe_eq(column, value):
    return column.is_(None) if value is None else column == value


def total_purchased(db: Session, product_id: int) -> Decimal:
    value = db.query(func.sum(ProductPurchase.quantity)).filter(
        ProductPurchase.product_id == product_id
    ).scalar()
    return _sum_or_zero(value)


def total_consumed(db: Session, product_id: int) -> Decimal:
    value = db.query(func.sum(ProductConsumption.quantity_used)).filter(
        ProductConsumption.product_id == product_id
    ).scalar()
    return _sum_or_zero(value)


def stock_left(db: Session, product_id: int) -> Decimal:
    # Flush so rows written earlier in this session are part of the aggregate
    db.flush()
    return total_purchased(db, product_id) - total_consumed(db, product_id)


def find_duplicate_purchase(db: Session, data: PurchaseInput, quantity: Decimal, purchase_date: date) -> Optional[ProductPurchase]:
    query = db.query(ProductPurchase).filter(ProductPurchase.product_id == data.product_id)
    if data.invoice_number:
        return query.filter(ProductPurchase.invoice_number == data.invoice_number).first()
    return query.filter(
        ProductPurchase.invoice_number.is_(None),
        ProductPurchase.quantity == quantity,
        ProductPurchase.purchase_date == purchase_date,
        _null_safe_eq(ProductPurchase.vendor_name, data.vendor_name),
        _null_safe_eq(ProductPurchase.created_by, data.created_by),
    ).first()


def record_purchase(db: Session, data: PurchaseInput) -> Tuple[ProductPurchase, bool]:
    """
    Append a purchase unless an identical one is already on the ledger.

    With an invoice number the (product_id, invoice_number) unique constraint
    decides; without one an equality match on the remaining fields does.
    Returns (purchase, created). Does not commit.
    """
    quantity = to_quantity(data.quantity)
    if quantity <= 0:
        raise ValueError("Purchase quantity must be greater than zero")
    purchase_date = data.purchase_date or utcnow().date()
    invoice_number = (data.invoice_number or "").strip() or None
    vendor_name = (data.vendor_name or "").strip() or None
    data = PurchaseInput(
        product_id=data.product_id,
        quantity=quantity,
        purchase_date=purchase_date,
        vendor_name=vendor_name,
        invoice_number=invoice_number,
        created_by=data.created_by,
    )

    existing = find_duplicate_purchase(db, data, quantity, purchase_date)
    if existing is not None:
        logger.info(
            f"Duplicate purchase ignored for product {data.product_id}",
            extra={"product_id": data.product_id, "invoice_number": invoice_number, "purchase_id": existing.id},
        )
        return existing, False

    if invoice_number:
        # A concurrent import may land the same invoice between check and insert
        inserted = insert_ignore_conflicts(
            db,
            ProductPurchase,
            [{
                "product_id": data.product_id,
                "quantity": quantity,
                "purchase_date": purchase_date,
                "vendor_name": vendor_name,
                "invoice_number": invoice_number,
                "created_by": data.created_by,
                "created_at": utcnow(),
            }],
            conflict_columns=("product_id", "invoice_number"),
        )
        purchase = find_duplicate_purchase(db, data, quantity, purchase_date)
        created = inserted > 0
    else:
        purchase = ProductPurchase(
            product_id=data.product_id,
            quantity=quantity,
            purchase_date=purchase_date,
            vendor_name=vendor_name,
            invoice_number=None,
            created_by=data.created_by,
        )
        db.add(purchase)
        db.flush()
        created = True

    if created:
        logger.info(
            f"Recorded purchase of {quantity} for product {data.product_id}",
            extra={"product_id": data.product_id, "quantity": str(quantity), "invoice_number": invoice_number},
        )
    return purchase, created


def record_consumption(db: Session, rows: Iterable[ConsumptionRow]) -> int:
    """
    Bulk insert consumption rows, ignoring any (order_id, product_id) already
    on the ledger. Zero quantities are never posted. Does not commit.
    """
    now = utcnow()
    values = [
        {
            "order_id": row.order_id,
            "external_order_id": row.external_order_id,
            "beautician_id": row.beautician_id,
            "product_id": row.product_id,
            "quantity_used": to_quantity(row.quantity_used),
            "auto_generated": row.auto_generated,
            "created_at": now,
        }
        for row in rows
        if to_quantity(row.quantity_used) > 0
    ]
    return insert_ignore_conflicts(
        db,
        ProductConsumption,
        values,
        conflict_columns=("order_id", "product_id"),
    )


def get_stock_summary(db: Session) -> List[Dict]:
    """Per active product: purchased, used, left, threshold and a low-stock flag."""
    purchased_sq = db.query(
        ProductPurchase.product_id.label("product_id"),
        func.sum(ProductPurchase.quantity).label("total"),
    ).group_by(ProductPurchase.product_id).subquery()
    used_sq = db.query(
        ProductConsumption.product_id.label("product_id"),
        func.sum(ProductConsumption.quantity_used).label("total"),
    ).group_by(ProductConsumption.product_id).subquery()

    rows = db.query(Product, purchased_sq.c.total, used_sq.c.total).outerjoin(
        purchased_sq, purchased_sq.c.product_id == Product.id
    ).outerjoin(
        used_sq, used_sq.c.product_id == Product.id
    ).filter(Product.is_active.is_(True)).order_by(Product.name).all()

    summary = []
    for product, purchased, used in rows:
        total_in = _sum_or_zero(purchased)
        total_out = _sum_or_zero(used)
        left = total_in - total_out
        threshold = to_quantity(product.low_stock_threshold or 0)
        summary.append({
            "product_id": product.id,
            "product_name": product.name,
            "unit": product.unit,
            "total_purchased": total_in,
            "total_used": total_out,
            "stock_left": left,
            "low_stock_threshold": threshold,
            "is_low_stock": left <= threshold,
        })
    return summary


# Catalog upserts used by admin endpoints and the import glue

def get_product_by_name(db: Session, name: str) -> Optional[Product]:
    return db.query(Product).filter(func.lower(Product.name) == (name or "").strip().lower()).first()


def get_active_products(db: Session) -> List[Product]:
    return db.query(Product).filter(Product.is_active.is_(True)).order_by(Product.name).all()


def upsert_product_by_name(
    db: Session,
    name: str,
    unit: str,
    cost_per_unit,
    low_stock_threshold=0,
    is_active: bool = True,
) -> Product:
    name = (name or "").strip()
    if not name:
        raise ValueError("Product name is required")
    product = get_product_by_name(db, name)
    if product is None:
        product = Product(name=name)
        db.add(product)
    product.unit = (unit or "pcs").strip()
    product.cost_per_unit = Decimal(str(cost_per_unit))
    product.low_stock_threshold = to_quantity(low_stock_threshold or 0)
    product.is_active = is_active
    db.flush()
    return product


def upsert_service_product_mapping(db: Session, service_name: str, product_id: int, quantity_required) -> ServiceProductMapping:
    normalized = normalize_service_name(service_name)
    quantity = to_quantity(quantity_required)
    if not normalized:
        raise ValueError("Service name is required")
    if quantity <= 0:
        raise ValueError("Required quantity must be greater than zero")
    mapping = db.query(ServiceProductMapping).filter(
        ServiceProductMapping.service_name == normalized,
        ServiceProductMapping.product_id == product_id,
    ).first()
    if mapping is None:
        mapping = ServiceProductMapping(service_name=normalized, product_id=product_id)
        db.add(mapping)
    mapping.quantity_required = quantity
    db.flush()
    return mapping


def upsert_order_default_product(db: Session, product_id: int, quantity) -> OrderDefaultProduct:
    quantity = to_quantity(quantity)
    if quantity <= 0:
        raise ValueError("Default quantity must be greater than zero")
    default = db.query(OrderDefaultProduct).filter(OrderDefaultProduct.product_id == product_id).first()
    if default is None:
        default = OrderDefaultProduct(product_id=product_id)
        db.add(default)
    default.quantity = quantity
    db.flush()
    return default
