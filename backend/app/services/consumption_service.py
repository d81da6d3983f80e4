"""
Order-completion inventory auto-deduction.

Runs once per completed order: resolves the services performed into product
quantities, posts one consumption row per product and logs anything that
could not be resolved. Safe to call any number of times for the same order:
a fast-exit check skips orders that were already processed and the
(order_id, product_id) and (order_id, gap_key) unique constraints absorb a
racing duplicate trigger.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.core.db_transaction import insert_ignore_conflicts
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.inventory import (
    MissingReasonEnum,
    OrderDefaultProduct,
    Product,
    ProductConsumption,
    ProductNotFound,
    ServiceProductMapping,
)
from app.models.order import Order
from app.services import stock_ledger_service
from app.services.product_resolver import ResolutionResult, resolve_required_products

logger = get_logger("consumption")

SKIP_ALREADY_PROCESSED = "already_processed"
SKIP_ORDER_NOT_FOUND = "order_not_found"
SKIP_NO_BEAUTICIAN = "no_beautician"


@dataclass
class ConsumptionOutcome:
    order_id: int
    skipped: Optional[str] = None
    required: Dict[int, Decimal] = field(default_factory=dict)
    rows_inserted: int = 0
    missing_logged: int = 0


def _order_services(order: Order) -> List[str]:
    names = []
    for item in order.services or []:
        if isinstance(item, dict):
            names.append(item.get("name") or "")
        elif isinstance(item, str):
            names.append(item)
    return names


def already_processed(db: Session, order: Order) -> bool:
    """True when consumption (or a missing-product log) exists for this order or its external id."""
    consumption_filter = ProductConsumption.order_id == order.id
    missing_filter = ProductNotFound.order_id == order.id
    if order.external_order_id:
        consumption_filter = or_(consumption_filter, ProductConsumption.external_order_id == order.external_order_id)
        missing_filter = or_(missing_filter, ProductNotFound.external_order_id == order.external_order_id)
    if db.query(ProductConsumption.id).filter(consumption_filter).first() is not None:
        return True
    return db.query(ProductNotFound.id).filter(missing_filter).first() is not None


def load_mappings(db: Session, service_names: List[str]) -> Dict[str, List[Tuple[int, Decimal]]]:
    if not service_names:
        return {}
    mappings: Dict[str, List[Tuple[int, Decimal]]] = defaultdict(list)
    rows = db.query(ServiceProductMapping).filter(
        ServiceProductMapping.service_name.in_(service_names)
    ).all()
    for row in rows:
        mappings[row.service_name].append((row.product_id, row.quantity_required))
    return dict(mappings)


def missing_gap_key(reason: MissingReasonEnum, service_name: str, product_id: Optional[int]) -> str:
    return f"{reason.value}:{(service_name or '').strip().lower()}:{product_id if product_id is not None else ''}"


def _log_missing(db: Session, order: Order, resolution: ResolutionResult) -> int:
    """
    One ProductNotFound row per gap. A gap already logged for the order (a
    racing trigger got there first) is skipped by the (order_id, gap_key)
    constraint. Does not commit.
    """
    entries = [
        (gap.service_name, None, MissingReasonEnum.NO_MAPPING)
        for gap in resolution.unresolved_services
    ] + [
        (gap.service_name, gap.product_id, MissingReasonEnum.PRODUCT_UNAVAILABLE)
        for gap in resolution.unresolved_products
    ]
    if not entries:
        return 0

    product_ids = {product_id for _, product_id, _ in entries if product_id is not None}
    names = {}
    if product_ids:
        names = dict(db.query(Product.id, Product.name).filter(Product.id.in_(product_ids)).all())

    now = utcnow()
    values = {}
    for service_name, product_id, reason in entries:
        key = missing_gap_key(reason, service_name, product_id)
        values.setdefault(key, {
            "order_id": order.id,
            "external_order_id": order.external_order_id,
            "service_name": service_name,
            "product_name": names.get(product_id),
            "reason": reason,
            "gap_key": key,
            "created_at": now,
        })

    logged = insert_ignore_conflicts(
        db, ProductNotFound, values.values(), conflict_columns=("order_id", "gap_key")
    )
    if logged:
        logger.warning(
            f"Order {order.id}: {logged} service/product gap(s) logged",
            extra={"order_id": order.id, "gaps": list(values)},
        )
    return logged


def on_order_completed(db: Session, order_id: int) -> ConsumptionOutcome:
    """
    Deduct inventory for a completed order. Commits on success; the caller
    decides what to do with exceptions (order completion treats them as
    non-fatal).
    """
    outcome = ConsumptionOutcome(order_id=order_id)

    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None:
        logger.warning(f"Consumption skipped: order {order_id} not found")
        outcome.skipped = SKIP_ORDER_NOT_FOUND
        return outcome

    if already_processed(db, order):
        logger.info(f"Consumption already posted for order {order_id}; nothing to do")
        outcome.skipped = SKIP_ALREADY_PROCESSED
        return outcome

    if order.employee_id is None:
        logger.info(f"Order {order_id} has no assigned beautician; inventory step skipped")
        outcome.skipped = SKIP_NO_BEAUTICIAN
        return outcome

    service_names = _order_services(order)
    normalized = sorted({name.strip().lower() for name in service_names if name and name.strip()})
    mappings = load_mappings(db, normalized)
    defaults = [(d.product_id, d.quantity) for d in db.query(OrderDefaultProduct).all()]
    mapped_ids = {pid for rows in mappings.values() for pid, _ in rows}
    active_ids = set()
    if mapped_ids:
        active_ids = {
            pid for (pid,) in db.query(Product.id).filter(
                Product.id.in_(mapped_ids), Product.is_active.is_(True)
            ).all()
        }

    resolution = resolve_required_products(service_names, mappings, defaults, active_ids)
    outcome.required = resolution.required
    outcome.missing_logged = _log_missing(db, order, resolution)

    outcome.rows_inserted = stock_ledger_service.record_consumption(db, [
        stock_ledger_service.ConsumptionRow(
            order_id=order.id,
            external_order_id=order.external_order_id,
            beautician_id=order.employee_id,
            product_id=product_id,
            quantity_used=quantity,
            auto_generated=True,
        )
        for product_id, quantity in resolution.required.items()
    ])
    db.commit()

    logger.info(
        f"Auto-deducted {outcome.rows_inserted} product(s) for order {order_id}",
        extra={
            "order_id": order_id,
            "beautician_id": order.employee_id,
            "required": {str(k): str(v) for k, v in resolution.required.items()},
            "missing_logged": outcome.missing_logged,
        },
    )
    return outcome
