"""
Order status transitions.

The edge into "completed" fires the inventory auto-deduction inline. Its
failures are logged and rolled back; they never undo or block the completion.
"""
from typing import Optional
from sqlalchemy.orm import Session
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.order import Order, OrderStatusEnum
from app.services import consumption_service

logger = get_logger("order_service")

# Terminal states cannot be left through a plain status update
TERMINAL_STATUSES = {
    OrderStatusEnum.COMPLETED,
    OrderStatusEnum.CANCELLED,
    OrderStatusEnum.EXPIRED,
}


class OrderNotFound(Exception):
    pass


class InvalidStatusTransition(Exception):
    pass


def get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None:
        raise OrderNotFound(f"Order {order_id} not found")
    return order


def run_completion_inventory(db: Session, order_id: int) -> Optional[consumption_service.ConsumptionOutcome]:
    try:
        return consumption_service.on_order_completed(db, order_id)
    except Exception as e:
        db.rollback()
        logger.error(
            f"Inventory auto-deduction failed for order {order_id}: {e}",
            exc_info=True,
            extra={"order_id": order_id},
        )
        return None


def update_order_status(db: Session, order_id: int, status: OrderStatusEnum) -> Order:
    status = OrderStatusEnum(status)
    order = get_order(db, order_id)
    previous = order.status

    if previous == status:
        return order
    if previous in TERMINAL_STATUSES:
        raise InvalidStatusTransition(f"Order {order_id} is already {previous.value}")
    if status == OrderStatusEnum.CANCELLED:
        raise InvalidStatusTransition("Cancel an order with a reason via the cancel action")

    order.status = status
    if status == OrderStatusEnum.COMPLETED:
        order.completed_at = utcnow()
    db.commit()
    logger.info(
        f"Order {order_id} status {previous.value} -> {status.value}",
        extra={"order_id": order_id, "from": previous.value, "to": status.value},
    )

    if status == OrderStatusEnum.COMPLETED:
        run_completion_inventory(db, order_id)
        db.refresh(order)
    return order
