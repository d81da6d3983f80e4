"""
Cancellation bucketing and reallocation.

Every cancelled or expired order falls in exactly one bucket, decided by its
normalized reason code. Beautician-caused orders can be re-offered to the
pool as a brand-new unassigned order; the cancelled order is never touched.
"""
import enum
import re
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.employee import Employee
from app.models.order import Order, OrderStatusEnum
from app.services.order_service import InvalidStatusTransition, get_order

logger = get_logger("cancellation")

EXPIRED_REASON = "no_action_expired"


class CancellationCategory(str, enum.Enum):
    CUSTOMER = "customer"
    BEAUTICIAN = "beautician"


REASON_CATEGORIES: Dict[str, CancellationCategory] = {
    "customer_cancelled_emergency": CancellationCategory.CUSTOMER,
    "customer_not_available": CancellationCategory.CUSTOMER,
    "customer_canceled_delay": CancellationCategory.CUSTOMER,
    "unwell": CancellationCategory.BEAUTICIAN,
    "timing_conflict": CancellationCategory.BEAUTICIAN,
    "location_issue": CancellationCategory.BEAUTICIAN,
    EXPIRED_REASON: CancellationCategory.BEAUTICIAN,
}

# Free-text labels the field app and the sheets send
REASON_ALIASES: Dict[str, str] = {
    "customer_canceled_emergency": "customer_cancelled_emergency",
    "customer_emergency": "customer_cancelled_emergency",
    "emergency": "customer_cancelled_emergency",
    "customer_unavailable": "customer_not_available",
    "customer_not_reachable": "customer_not_available",
    "not_available": "customer_not_available",
    "customer_cancelled_delay": "customer_canceled_delay",
    "delay": "customer_canceled_delay",
    "sick": "unwell",
    "not_well": "unwell",
    "feeling_unwell": "unwell",
    "time_conflict": "timing_conflict",
    "schedule_conflict": "timing_conflict",
    "location_problem": "location_issue",
    "wrong_location": "location_issue",
    "expired": EXPIRED_REASON,
    "no_action": EXPIRED_REASON,
}

CANCELLED_STATUSES = (OrderStatusEnum.CANCELLED, OrderStatusEnum.EXPIRED)


class ReallocationError(Exception):
    pass


def normalize_reason(reason: Optional[str]) -> str:
    code = re.sub(r"[\s\-]+", "_", (reason or "").strip().lower())
    code = re.sub(r"[^a-z0-9_]", "", code).strip("_")
    return REASON_ALIASES.get(code, code)


def classify_cancellation(reason: Optional[str]) -> CancellationCategory:
    # Unknown codes stay re-offerable so the job is not silently lost
    return REASON_CATEGORIES.get(normalize_reason(reason), CancellationCategory.BEAUTICIAN)


def is_reallocatable(order: Order) -> bool:
    return (
        order.status in CANCELLED_STATUSES
        and classify_cancellation(order.acceptance_status) == CancellationCategory.BEAUTICIAN
    )


def cancel_order(db: Session, order_id: int, reason: str) -> Order:
    order = get_order(db, order_id)
    if order.status in (OrderStatusEnum.COMPLETED, OrderStatusEnum.CANCELLED, OrderStatusEnum.EXPIRED):
        raise InvalidStatusTransition(f"Order {order_id} is already {order.status.value}")
    code = normalize_reason(reason)
    if not code:
        raise ValueError("Cancellation reason is required")
    order.status = OrderStatusEnum.CANCELLED
    order.acceptance_status = code
    order.cancelled_at = utcnow()
    db.commit()
    db.refresh(order)
    logger.info(
        f"Order {order_id} cancelled ({code}, {classify_cancellation(code).value})",
        extra={"order_id": order_id, "reason": code},
    )
    return order


def list_cancelled_orders(db: Session, category: CancellationCategory) -> List[Dict]:
    rows = db.query(Order, Employee.name).outerjoin(
        Employee, Order.employee_id == Employee.id
    ).filter(Order.status.in_(CANCELLED_STATUSES)).order_by(Order.appointment_time.desc()).all()

    reallocated_ids = {
        ref_id for (ref_id,) in db.query(Order.reference_order_id).filter(
            Order.reference_order_id.isnot(None)
        ).all()
    }

    result = []
    for order, employee_name in rows:
        if classify_cancellation(order.acceptance_status) != category:
            continue
        result.append({
            "order": order,
            "employee_name": employee_name,
            "reason_code": normalize_reason(order.acceptance_status),
            "category": category,
            "can_reallocate": category == CancellationCategory.BEAUTICIAN and order.id not in reallocated_ids,
        })
    return result


def reallocate(db: Session, order_id: int) -> Order:
    """Clone a beautician-cancelled order into a new pending, unassigned order."""
    original = get_order(db, order_id)
    if original.status not in CANCELLED_STATUSES:
        raise ReallocationError(f"Order {order_id} is not cancelled")
    if classify_cancellation(original.acceptance_status) != CancellationCategory.BEAUTICIAN:
        raise ReallocationError("Only beautician-caused cancellations can be reallocated")
    existing = db.query(Order).filter(Order.reference_order_id == original.id).first()
    if existing is not None:
        raise ReallocationError(f"Order {order_id} was already reallocated as order {existing.id}")

    new_order = Order(
        customer_name=original.customer_name,
        phone=original.phone,
        address=original.address,
        latitude=original.latitude,
        longitude=original.longitude,
        services=list(original.services or []),
        amount=original.amount,
        duration=original.duration,
        appointment_time=original.appointment_time,
        payment_mode=original.payment_mode,
        status=OrderStatusEnum.PENDING,
        employee_id=None,
        external_order_id=f"REALLOC-{original.id}-{uuid.uuid4().hex[:8].upper()}",
        reference_order_id=original.id,
    )
    db.add(new_order)
    db.commit()
    db.refresh(new_order)
    logger.info(
        f"Order {order_id} reallocated as order {new_order.id}",
        extra={"original_order_id": order_id, "new_order_id": new_order.id},
    )
    return new_order


def expire_inactive_orders(db: Session, before: Optional[datetime] = None) -> int:
    """
    Expire pending/confirmed orders whose appointment is older than ``before``.
    In-progress orders have an active service session and are left alone.
    """
    if before is None:
        before = utcnow() - timedelta(hours=settings.ORDER_INACTIVITY_HOURS)
    stale = db.query(Order).filter(
        Order.status.in_((OrderStatusEnum.PENDING, OrderStatusEnum.CONFIRMED)),
        Order.appointment_time < before,
    ).all()
    now = utcnow()
    for order in stale:
        order.status = OrderStatusEnum.EXPIRED
        order.acceptance_status = EXPIRED_REASON
        order.cancelled_at = now
    db.commit()
    if stale:
        logger.info(
            f"Expired {len(stale)} inactive order(s)",
            extra={"order_ids": [o.id for o in stale], "before": before.isoformat()},
        )
    return len(stale)
